"""Run directories for search output.

Every search launched from the command line can record its configuration,
periodic checkpoints, a log file and its final result in a timestamped
directory.

Directory Structure:
    output/
        runs/
            YYYYMMDD_HHMMSS_<run_type>_<description>/
                metadata.json     # Status, timestamps, summary
                config.json       # Search and fitness configuration
                results.json      # Best candidate and score
                checkpoints/      # Periodic search state
                logs/             # search.log

Run Types:
    - search: A single strategy run
    - comparison: Several strategies on the same seed
"""

import json
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

RUN_STATUSES = ("running", "completed", "stopped", "failed")


@dataclass
class RunMetadata:
    """Bookkeeping stored in metadata.json."""
    run_id: str
    run_type: str
    description: str
    created_at: str
    completed_at: Optional[str] = None
    status: str = "running"
    summary: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'RunMetadata':
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _read_json(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        return json.load(f)


def default_output_dir() -> Path:
    """./output under the project root if one is found above cwd, else ./output."""
    current = Path.cwd()
    while current != current.parent:
        if (current / "src" / "primefold").exists():
            return current / "output"
        current = current.parent
    return Path("output")


class RunManager:
    """Creates, finds and prunes run directories under base_dir/runs."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else default_output_dir()
        self.runs_dir = self.base_dir / "runs"
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    def create_run(
        self,
        run_type: str,
        description: str,
        config: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None,
    ) -> 'Run':
        """Create a timestamped run directory.

        Args:
            run_type: "search" or "comparison".
            description: Short label, sanitized into the directory name.
            config: Configuration to store in config.json.
            tags: Optional labels, e.g. the algorithm and mode.

        Returns:
            The new Run.
        """
        now = datetime.now()
        label = description.replace(" ", "_").replace("/", "-")[:30]
        run_id = f"{now.strftime('%Y%m%d_%H%M%S')}_{run_type}_{label}"

        run_dir = self.runs_dir / run_id
        suffix = 1
        while run_dir.exists():
            suffix += 1
            run_dir = self.runs_dir / f"{run_id}_{suffix}"

        for sub in ("checkpoints", "logs"):
            (run_dir / sub).mkdir(parents=True, exist_ok=True)

        run = Run(run_dir, RunMetadata(
            run_id=run_dir.name,
            run_type=run_type,
            description=description,
            created_at=now.isoformat(),
            tags=tags or [],
        ))
        run.save_metadata()
        if config:
            run.save_config(config)
        return run

    def get_run(self, run_id: str) -> Optional['Run']:
        run_dir = self.runs_dir / run_id
        metadata_file = run_dir / "metadata.json"
        if not metadata_file.exists():
            return None
        return Run(run_dir, RunMetadata.from_dict(_read_json(metadata_file)))

    def list_runs(self, run_type: Optional[str] = None, limit: int = 20) -> List['Run']:
        """Runs sorted newest first, optionally filtered by type."""
        runs: List['Run'] = []
        for run_dir in sorted(self.runs_dir.iterdir(), reverse=True):
            if len(runs) >= limit:
                break
            run = self.get_run(run_dir.name) if run_dir.is_dir() else None
            if run is None:
                continue
            if run_type and run.metadata.run_type != run_type:
                continue
            runs.append(run)
        return runs

    def cleanup_old_runs(
        self,
        keep_count: int = 10,
        run_type: Optional[str] = None,
        dry_run: bool = True,
    ) -> List[str]:
        """Delete all but the newest keep_count runs.

        Returns:
            IDs of the runs deleted (or that would be, with dry_run).
        """
        doomed = self.list_runs(run_type=run_type, limit=10_000)[keep_count:]
        if not dry_run:
            for run in doomed:
                shutil.rmtree(run.run_dir)
        return [run.metadata.run_id for run in doomed]


class Run:
    """One run directory."""

    def __init__(self, run_dir: Path, metadata: RunMetadata):
        self.run_dir = Path(run_dir)
        self.metadata = metadata

    @property
    def checkpoints_dir(self) -> Path:
        return self.run_dir / "checkpoints"

    @property
    def logs_dir(self) -> Path:
        return self.run_dir / "logs"

    @property
    def log_path(self) -> Path:
        return self.logs_dir / "search.log"

    def save_metadata(self) -> None:
        _write_json(self.run_dir / "metadata.json", self.metadata.to_dict())

    def save_config(self, config: Dict[str, Any]) -> None:
        _write_json(self.run_dir / "config.json", config)

    def load_config(self) -> Dict[str, Any]:
        return _read_json(self.run_dir / "config.json")

    def save_results(self, results: Dict[str, Any]) -> None:
        """Write results.json, stamped with the run ID and completion time."""
        stamped = dict(results)
        stamped["_run_id"] = self.metadata.run_id
        stamped["_completed_at"] = datetime.now().isoformat()
        _write_json(self.run_dir / "results.json", stamped)

    def load_results(self) -> Optional[Dict[str, Any]]:
        path = self.run_dir / "results.json"
        return _read_json(path) if path.exists() else None

    def save_checkpoint(self, data: Dict[str, Any], name: str) -> Path:
        """Write checkpoints/checkpoint_<name>.json and return its path."""
        path = self.checkpoints_dir / f"checkpoint_{name}.json"
        _write_json(path, data)
        return path

    def complete(self, status: str = "completed", summary: Optional[Dict[str, Any]] = None) -> None:
        """Record the final status and an optional summary."""
        if status not in RUN_STATUSES:
            raise ValueError(f"Unknown run status {status!r}; expected one of {RUN_STATUSES}")
        self.metadata.status = status
        self.metadata.completed_at = datetime.now().isoformat()
        if summary:
            self.metadata.summary = summary
        self.save_metadata()

    def __repr__(self) -> str:
        return f"Run({self.metadata.run_id}, type={self.metadata.run_type}, status={self.metadata.status})"
