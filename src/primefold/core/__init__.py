"""Prime generation and the memoizing primality oracle."""

from primefold.core.sieve import PrimeCache, generate_primes, is_prime

__all__ = [
    "PrimeCache",
    "generate_primes",
    "is_prime",
]
