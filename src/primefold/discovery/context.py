"""Explicit search context: primality oracle, fitness config and RNG.

Everything a run needs from its surroundings is passed in through a
SearchContext, so separate runs share no hidden state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from primefold.core.sieve import PrimeCache
from primefold.discovery.candidate import Candidate, SearchMode
from primefold.evaluation.config import FitnessConfig
from primefold.evaluation.fitness import PrimeFoldEvaluator, PrimeGenEvaluator, Score

logger = logging.getLogger(__name__)

DEFAULT_PRE_CACHE = 10_000


class CandidateEvaluator:
    """Scores candidates of one mode, hiding which evaluator is used."""

    def __init__(
        self,
        mode: SearchMode,
        oracle: PrimeCache,
        sample_size: int,
        fitness_config: FitnessConfig,
        rng: np.random.Generator,
    ):
        self.mode = SearchMode(mode)
        if self.mode is SearchMode.PRIME_GEN:
            self._evaluator = PrimeGenEvaluator(oracle, sample_size)
        else:
            primes, composites = oracle.sample_data(sample_size)
            self._evaluator = PrimeFoldEvaluator(primes, composites, fitness_config, rng)

    def score(self, candidate: Candidate) -> Score:
        if candidate.mode is not self.mode:
            raise ValueError(
                f"Cannot score a {candidate.mode.value} candidate in {self.mode.value} mode"
            )
        return self._evaluator.score(*candidate.exprs)


@dataclass
class SearchContext:
    """Collaborators shared by the strategies of a search."""

    oracle: PrimeCache = field(default_factory=PrimeCache)
    fitness_config: FitnessConfig = field(default_factory=FitnessConfig)
    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    @classmethod
    def create(
        cls,
        seed: int | None = None,
        fitness_config: FitnessConfig | None = None,
        pre_cache: int = DEFAULT_PRE_CACHE,
    ) -> SearchContext:
        """Build a context with a seeded RNG and a warmed primality cache."""
        oracle = PrimeCache()
        if pre_cache >= 2:
            oracle.pre_cache(pre_cache)
        return cls(
            oracle=oracle,
            fitness_config=fitness_config if fitness_config is not None else FitnessConfig(),
            rng=np.random.default_rng(seed),
        )

    def create_evaluator(self, mode: SearchMode, sample_size: int) -> CandidateEvaluator:
        logger.debug("Creating %s evaluator with sample size %d", SearchMode(mode).value, sample_size)
        return CandidateEvaluator(mode, self.oracle, sample_size, self.fitness_config, self.rng)
