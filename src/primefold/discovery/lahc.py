"""Late Acceptance Hill Climbing."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from primefold.discovery.base import SearchConfig, SearchStrategy, StepResult, effective
from primefold.discovery.context import SearchContext


def late_acceptance(candidate: float, current: float, history: Iterable[float]) -> bool:
    """LAHC acceptance rule.

    A candidate is accepted if it beats the current score, or the most
    recent score pushed to the history window.
    """
    if candidate > current:
        return True
    history = list(history)
    return bool(history) and candidate > history[-1]


class LAHCStrategy(SearchStrategy):
    """Hill climbing that also accepts moves beating the latest history score.

    The history window is a bounded deque; the resulting current score is
    pushed after every step. PrimeFold proposals use a symmetric pair
    mutation 20% of the time and otherwise mutate both functions.
    """

    name = "lahc"
    default_symmetric_rate = 0.20

    def __init__(self, config: SearchConfig, context: SearchContext):
        super().__init__(config, context)
        self.history: deque[float] = deque(maxlen=config.history_length)

    def step(self) -> StepResult:
        self.iteration += 1

        candidate, score = self.propose(self.current)
        accepted = score is not None and late_acceptance(
            effective(score), effective(self.current_score), self.history
        )
        if accepted:
            self.current = candidate
            self.current_score = score
            self.update_best(candidate, score)

        self.history.append(effective(self.current_score))
        return self.result(accepted)
