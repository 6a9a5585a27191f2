"""primefold - search for arithmetic expressions that reveal prime structure."""

__version__ = "0.1.0"

from primefold.core.sieve import PrimeCache, generate_primes, is_prime
from primefold.expression.parser import parse, parse_expression
from primefold.discovery.candidate import Candidate, SearchMode
from primefold.discovery.base import SearchConfig
from primefold.discovery.context import SearchContext
from primefold.discovery.controller import SearchController
from primefold.evaluation.config import FitnessConfig

__all__ = [
    "PrimeCache",
    "generate_primes",
    "is_prime",
    "parse",
    "parse_expression",
    "Candidate",
    "SearchMode",
    "SearchConfig",
    "SearchContext",
    "SearchController",
    "FitnessConfig",
]
