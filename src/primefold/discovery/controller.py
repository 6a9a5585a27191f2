"""Search controller: drives one strategy run tick by tick.

A run moves Idle -> Running -> Stopped | Completed. Each tick performs
exactly one strategy step and reports progress; a stop request is honoured
at the next tick boundary.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from primefold.discovery.annealing import AnnealingStrategy
from primefold.discovery.base import SearchConfig, SearchStrategy, StepResult
from primefold.discovery.context import SearchContext
from primefold.discovery.genetic import GeneticStrategy
from primefold.discovery.lahc import LAHCStrategy
from primefold.evaluation.fitness import Score

logger = logging.getLogger(__name__)

STRATEGIES: dict[str, type[SearchStrategy]] = {
    LAHCStrategy.name: LAHCStrategy,
    GeneticStrategy.name: GeneticStrategy,
    AnnealingStrategy.name: AnnealingStrategy,
}


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"


@dataclass
class ProgressReport:
    """Per-tick progress of a running search."""

    iteration: int
    max_iterations: int
    current_expr: str
    current_score: Score | None
    best_expr: str
    best_score: Score | None
    accepted: bool = False

    @classmethod
    def from_step(cls, step: StepResult, max_iterations: int) -> ProgressReport:
        return cls(
            iteration=step.iteration,
            max_iterations=max_iterations,
            current_expr=step.current.key,
            current_score=step.current_score,
            best_expr=step.best.key,
            best_score=step.best_score,
            accepted=step.accepted,
        )


@dataclass
class SearchResult:
    """Final outcome of a run."""

    best_expr: str
    best_score: Score | None
    iterations: int
    status: RunState
    elapsed: float = 0.0

    def to_dict(self) -> dict:
        return {
            "best_expr": self.best_expr,
            "best_score": self.best_score.to_dict() if self.best_score else None,
            "iterations": self.iterations,
            "status": self.status.value,
            "elapsed": self.elapsed,
        }


def create_strategy(config: SearchConfig, context: SearchContext) -> SearchStrategy:
    try:
        strategy_class = STRATEGIES[config.algorithm]
    except KeyError:
        raise ValueError(f"Unknown algorithm: {config.algorithm!r}") from None
    return strategy_class(config, context)


class SearchController:
    """Runs at most one search at a time over a shared context."""

    def __init__(self, context: SearchContext | None = None):
        self.context = context if context is not None else SearchContext.create()
        self.state = RunState.IDLE
        self.strategy: SearchStrategy | None = None
        self.config: SearchConfig | None = None
        self.result: SearchResult | None = None
        self._stop_requested = False
        self._started_at = 0.0

    @property
    def running(self) -> bool:
        return self.state is RunState.RUNNING

    def start(self, config: SearchConfig) -> None:
        """Begin a new run with a fresh strategy.

        Raises:
            RuntimeError: If a run is already in progress.
        """
        if self.running:
            raise RuntimeError("A search is already running; stop it first")

        logger.info(
            "Starting %s search (%s, %d iterations)",
            config.algorithm, config.mode.value, config.max_iterations,
        )
        self.config = config
        self.strategy = create_strategy(config, self.context)
        self.result = None
        self._stop_requested = False
        self._started_at = time.time()
        self.state = RunState.RUNNING

    def stop(self) -> None:
        """Request the running search to stop at the next tick."""
        if self.running:
            self._stop_requested = True

    def tick(self) -> ProgressReport | None:
        """Perform one step.

        Returns:
            The progress report, or None if no step was taken because the
            run is not running, was stopped, or has just completed.
        """
        if not self.running:
            return None
        if self._stop_requested:
            self._finish(RunState.STOPPED)
            return None
        if self.strategy.finished:
            self._finish(RunState.COMPLETED)
            return None

        step = self.strategy.step()
        return ProgressReport.from_step(step, self.config.max_iterations)

    def _finish(self, state: RunState) -> None:
        strategy = self.strategy
        self.state = state
        self.result = SearchResult(
            best_expr=strategy.best.key,
            best_score=strategy.best_score,
            iterations=strategy.iteration,
            status=state,
            elapsed=time.time() - self._started_at,
        )
        best = strategy.best_score.total if strategy.best_score else float("nan")
        logger.info(
            "Search %s after %d iterations: best %.4f for %s",
            state.value, strategy.iteration, best, strategy.best.key,
        )

    def run(
        self,
        config: SearchConfig,
        on_progress: Callable[[ProgressReport], None] | None = None,
        on_complete: Callable[[SearchResult], None] | None = None,
        tick_interval: float = 0.0,
    ) -> SearchResult:
        """Start a run and tick it to the end.

        Args:
            config: Run configuration.
            on_progress: Called with every progress report.
            on_complete: Called once with the final result.
            tick_interval: Seconds to sleep between ticks.

        Returns:
            The final SearchResult (Completed, or Stopped if stop() was
            called from a callback or signal handler).
        """
        self.start(config)
        while self.running:
            report = self.tick()
            if report is not None:
                if on_progress:
                    on_progress(report)
                if tick_interval > 0:
                    time.sleep(tick_interval)

        if on_complete:
            on_complete(self.result)
        return self.result
