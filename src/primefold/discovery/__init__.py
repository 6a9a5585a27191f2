"""Stochastic search for prime-revealing expressions.

Three strategies (late acceptance hill climbing, a genetic algorithm and
simulated annealing) share one candidate representation and are driven
tick by tick by a SearchController.
"""

from primefold.discovery.candidate import Candidate, CandidateOperators, SearchMode
from primefold.discovery.context import CandidateEvaluator, SearchContext
from primefold.discovery.base import SearchConfig, SearchStrategy, StepResult
from primefold.discovery.lahc import LAHCStrategy
from primefold.discovery.genetic import GeneticStrategy
from primefold.discovery.annealing import AnnealingStrategy
from primefold.discovery.controller import (
    ProgressReport,
    RunState,
    SearchController,
    SearchResult,
    create_strategy,
)

__all__ = [
    "Candidate",
    "CandidateOperators",
    "SearchMode",
    "CandidateEvaluator",
    "SearchContext",
    "SearchConfig",
    "SearchStrategy",
    "StepResult",
    "LAHCStrategy",
    "GeneticStrategy",
    "AnnealingStrategy",
    "ProgressReport",
    "RunState",
    "SearchController",
    "SearchResult",
    "create_strategy",
]
