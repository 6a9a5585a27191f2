"""Simulated annealing."""

from __future__ import annotations

import math

from primefold.discovery.base import SearchConfig, SearchStrategy, StepResult, effective
from primefold.discovery.context import SearchContext


def acceptance_probability(delta: float, temperature: float) -> float:
    """Metropolis criterion: 1 for improvements, exp(delta / T) otherwise."""
    if delta > 0:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(delta / temperature)


class AnnealingStrategy(SearchStrategy):
    """Simulated annealing with geometric cooling.

    Proposals are retried (up to max_attempts) until one is unseen and
    scorable. The temperature is multiplied by cooling_rate after every
    step, accepted or not. PrimeFold proposals use a symmetric pair
    mutation 15% of the time and otherwise mutate f or g, not both.
    """

    name = "sa"
    default_symmetric_rate = 0.15

    def __init__(self, config: SearchConfig, context: SearchContext):
        super().__init__(config, context)
        self.temperature = config.start_temperature

    def step(self) -> StepResult:
        self.iteration += 1

        candidate, score = self.propose(self.current, require_score=True, mutate_both=False)
        accepted = False
        if score is not None:
            delta = score.total - effective(self.current_score)
            accepted = self.rng.random() < acceptance_probability(delta, self.temperature)
            if accepted:
                self.current = candidate
                self.current_score = score
                self.update_best(candidate, score)

        self.temperature *= self.config.cooling_rate
        return self.result(accepted)
