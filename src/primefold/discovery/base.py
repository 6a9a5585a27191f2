"""Search configuration and the common strategy machinery."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from primefold.discovery.candidate import Candidate, CandidateOperators, SearchMode
from primefold.discovery.context import SearchContext
from primefold.evaluation.fitness import Score

ALGORITHMS = ("lahc", "ga", "sa")


@dataclass
class SearchConfig:
    """Configuration for a search run."""

    mode: SearchMode = SearchMode.PRIME_GEN
    algorithm: str = "lahc"
    max_iterations: int = 1000
    sample_size: int = 200

    # Candidate generation
    max_depth: int = 3
    enforce_symmetry: bool = False
    max_attempts: int = 10  # Retries for duplicate or unscorable proposals
    symmetric_rate: float | None = None  # None uses the strategy default

    # LAHC
    history_length: int = 50

    # Genetic algorithm
    population_size: int = 10
    tournament_size: int = 3
    random_rate: float = 0.1
    mutation_rate: float = 0.3

    # Simulated annealing
    start_temperature: float = 10.0
    cooling_rate: float = 0.99

    def __post_init__(self):
        self.mode = SearchMode(self.mode)
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm {self.algorithm!r}; expected one of {ALGORITHMS}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        for name in ("sample_size", "max_attempts", "history_length", "tournament_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.population_size < 2:
            raise ValueError(f"population_size must be >= 2, got {self.population_size}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.start_temperature <= 0:
            raise ValueError(f"start_temperature must be > 0, got {self.start_temperature}")
        if not 0 < self.cooling_rate <= 1:
            raise ValueError(f"cooling_rate must be in (0, 1], got {self.cooling_rate}")
        for name in ("random_rate", "mutation_rate", "symmetric_rate"):
            value = getattr(self, name)
            if value is not None and not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchConfig:
        return cls(**data)


@dataclass
class StepResult:
    """Outcome of one strategy step."""

    iteration: int
    current: Candidate
    current_score: Score | None
    best: Candidate
    best_score: Score | None
    accepted: bool = False


def effective(score: Score | None) -> float:
    """Comparable fitness value: a missing or invalid score ranks below everything."""
    if score is None or not score.valid:
        return -math.inf
    return score.total


class SearchStrategy(ABC):
    """Base class for the search strategies.

    A strategy is created per run. It seeds itself with one random
    candidate, then advances one proposal per call to step(). Every
    evaluated candidate's key goes into the seen set, so no candidate is
    scored twice.
    """

    name: ClassVar[str] = ""
    default_symmetric_rate: ClassVar[float] = 0.15

    def __init__(self, config: SearchConfig, context: SearchContext):
        self.config = config
        self.context = context
        self.rng = context.rng
        self.operators = CandidateOperators(
            config.mode, self.rng, config.max_depth, config.enforce_symmetry
        )
        self.evaluator = context.create_evaluator(config.mode, config.sample_size)
        self.symmetric_rate = (
            self.default_symmetric_rate if config.symmetric_rate is None
            else config.symmetric_rate
        )

        self.iteration = 0
        self.seen: set[str] = set()

        self.current = self.operators.random()
        self.current_score = self.evaluate(self.current)
        self.best = self.current
        self.best_score = self.current_score

    @property
    def finished(self) -> bool:
        return self.iteration >= self.config.max_iterations

    def evaluate(self, candidate: Candidate) -> Score | None:
        """Score a candidate and mark it seen; invalid scores become None."""
        self.seen.add(candidate.key)
        score = self.evaluator.score(candidate)
        return score if score.valid else None

    def update_best(self, candidate: Candidate, score: Score | None) -> bool:
        if effective(score) > effective(self.best_score):
            self.best = candidate
            self.best_score = score
            return True
        return False

    def propose(
        self, parent: Candidate, require_score: bool = False, mutate_both: bool = True
    ) -> tuple[Candidate, Score | None]:
        """Mutate parent until an unseen (and, if required, scorable) candidate appears.

        Gives up after config.max_attempts tries and returns the last
        proposal with a None score, which no strategy accepts.
        """
        candidate = parent
        for _ in range(self.config.max_attempts):
            candidate = self.operators.mutate(parent, self.symmetric_rate, mutate_both)
            if candidate.key in self.seen:
                continue
            score = self.evaluate(candidate)
            if score is not None or not require_score:
                return candidate, score
        return candidate, None

    def result(self, accepted: bool = False) -> StepResult:
        return StepResult(
            iteration=self.iteration,
            current=self.current,
            current_score=self.current_score,
            best=self.best,
            best_score=self.best_score,
            accepted=accepted,
        )

    @abstractmethod
    def step(self) -> StepResult:
        """Advance the search by one iteration."""
