"""Genetic algorithm over expression candidates."""

from __future__ import annotations

from primefold.discovery.base import SearchConfig, SearchStrategy, StepResult, effective
from primefold.discovery.candidate import Candidate, SearchMode
from primefold.discovery.context import SearchContext
from primefold.evaluation.fitness import Score

# Re-draws per tournament slot while the drawn member has no score.
TOURNAMENT_RETRIES = 10


class GeneticStrategy(SearchStrategy):
    """Generational GA with a single elite slot.

    Each step builds a full new generation: the best-so-far candidate is
    carried over, and the rest is filled with mutated crossover children
    of tournament-selected parents. Children enter only when unseen and
    scorable. If too many draws fail, the generation is topped up with
    fresh random candidates, so the population size never changes.
    """

    name = "ga"
    default_symmetric_rate = 0.15

    def __init__(self, config: SearchConfig, context: SearchContext):
        super().__init__(config, context)
        self.scores: dict[str, Score | None] = {self.current.key: self.current_score}
        self.population: list[Candidate] = [self.current]
        self.initialize_population()

    def initialize_population(self) -> None:
        """Fill the population with distinct random candidates."""
        attempts = 0
        limit = self.config.max_attempts * self.config.population_size
        while len(self.population) < self.config.population_size:
            candidate = self.operators.random()
            attempts += 1
            if candidate.key in self.seen and attempts < limit:
                continue
            self._add(self.population, candidate, self.evaluate(candidate))

    def _add(self, population: list[Candidate], candidate: Candidate, score: Score | None) -> None:
        population.append(candidate)
        self.scores[candidate.key] = score
        self.update_best(candidate, score)

    def score_of(self, candidate: Candidate) -> Score | None:
        return self.scores.get(candidate.key)

    def select_parent(self) -> Candidate:
        """Tournament selection, re-drawing members without a score."""
        best: Candidate | None = None
        for _ in range(self.config.tournament_size):
            member = self._draw()
            for _ in range(TOURNAMENT_RETRIES):
                if self.score_of(member) is not None:
                    break
                member = self._draw()
            if best is None or effective(self.score_of(member)) > effective(self.score_of(best)):
                best = member
        return best

    def _draw(self) -> Candidate:
        return self.population[int(self.rng.integers(len(self.population)))]

    def mutate_child(self, child: Candidate) -> Candidate:
        """Random replacement, symmetric mutation or tree mutation."""
        if self.rng.random() < self.config.random_rate:
            return self.operators.random()
        if (
            self.config.mode is SearchMode.PRIME_FOLD
            and not self.operators.enforce_symmetry
            and self.rng.random() < self.symmetric_rate
        ):
            return self.operators.symmetric_mutation(child)
        if self.rng.random() < self.config.mutation_rate:
            return self.operators.mutate(child)
        return child

    def step(self) -> StepResult:
        self.iteration += 1
        size = self.config.population_size

        generation: list[Candidate] = [self.best]
        keys = {self.best.key}
        failures = 0
        limit = self.config.max_attempts * size

        while len(generation) < size and failures < limit:
            first, second = self.select_parent(), self.select_parent()
            for child in self.operators.crossover(first, second):
                if len(generation) >= size:
                    break
                child = self.mutate_child(child)
                if child.key in self.seen or child.key in keys:
                    failures += 1
                    continue
                score = self.evaluate(child)
                if score is None:
                    failures += 1
                    continue
                self._add(generation, child, score)
                keys.add(child.key)
                self.current, self.current_score = child, score

        while len(generation) < size:
            candidate = self.operators.random()
            score = self.score_of(candidate) if candidate.key in self.seen else self.evaluate(candidate)
            self._add(generation, candidate, score)

        self.population = generation
        self.scores = {member.key: self.scores.get(member.key) for member in generation}
        return self.result(accepted=True)
