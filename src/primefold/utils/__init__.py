"""Run directories and logging setup."""

from primefold.utils.log import setup_logger
from primefold.utils.run_manager import Run, RunManager, RunMetadata

__all__ = [
    "Run",
    "RunManager",
    "RunMetadata",
    "setup_logger",
]
