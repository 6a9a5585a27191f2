"""Prime number generation and a memoizing primality oracle.

The sieve is a NumPy Sieve of Eratosthenes. Single-number checks use
6k +/- 1 trial division for small inputs and a deterministic Miller-Rabin
test for large ones, so the fitness evaluators can query arbitrary
function outputs without building a sieve that large.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

TRIAL_DIVISION_LIMIT = 1_000_000

# Deterministic for every n < 3.3e24.
MILLER_RABIN_BASES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def _numpy_sieve(limit: int) -> np.ndarray:
    """NumPy-based Sieve of Eratosthenes.

    Args:
        limit: Upper bound for prime generation.

    Returns:
        Array of prime numbers up to limit.
    """
    if limit < 2:
        return np.array([], dtype=np.int64)

    is_prime = np.ones(limit + 1, dtype=bool)
    is_prime[0] = False
    is_prime[1] = False

    for i in range(2, int(np.sqrt(limit)) + 1):
        if is_prime[i]:
            is_prime[i*i::i] = False

    return np.nonzero(is_prime)[0].astype(np.int64)


def generate_primes(limit: int) -> np.ndarray:
    """Generate all prime numbers up to and including limit.

    Args:
        limit: Upper bound for prime generation (inclusive).

    Returns:
        Array of prime numbers up to limit.

    Raises:
        ValueError: If limit is less than 2.
    """
    if limit < 2:
        raise ValueError(f"Limit must be >= 2, got {limit}")

    return _numpy_sieve(limit)


def _trial_division(n: int) -> bool:
    if n % 2 == 0:
        return n == 2
    if n % 3 == 0:
        return n == 3

    i = 5
    while i * i <= n:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6

    return True


def _miller_rabin(n: int) -> bool:
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for a in MILLER_RABIN_BASES:
        if a % n == 0:
            continue
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False

    return True


def is_prime(n: int) -> bool:
    """Check if a single number is prime.

    Uses 6k +/- 1 trial division below one million and deterministic
    Miller-Rabin above it.

    Args:
        n: Number to check.

    Returns:
        True if n is prime, False otherwise.
    """
    n = int(n)
    if n < 2:
        return False
    if n < 4:
        return True
    if n < TRIAL_DIVISION_LIMIT:
        return _trial_division(n)
    for p in MILLER_RABIN_BASES:
        if n % p == 0:
            return n == p
    return _miller_rabin(n)


@dataclass
class CacheStats:
    """Hit/miss counters for a PrimeCache."""

    hits: int = 0
    misses: int = 0
    cached_primes: int = 0
    cached_composites: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "cached_primes": self.cached_primes,
            "cached_composites": self.cached_composites,
        }


class PrimeCache:
    """Memoizing primality oracle shared by the fitness evaluators.

    Results for numbers up to ``cache_limit`` are kept in two sets. Larger
    numbers are checked directly every time so that a search over wild
    expressions cannot grow the cache without bound.

    Example:
        >>> cache = PrimeCache()
        >>> cache.pre_cache(1000)
        >>> cache.is_prime(997)
        True
    """

    def __init__(self, cache_limit: int = 100_000):
        if cache_limit < 2:
            raise ValueError(f"cache_limit must be >= 2, got {cache_limit}")
        self.cache_limit = cache_limit
        self._primes: set[int] = set()
        self._composites: set[int] = set()
        self._hits = 0
        self._misses = 0
        self._sieved_to = 1

    def is_prime(self, n: int) -> bool:
        """Return whether n is prime, consulting the cache first."""
        n = int(n)
        if n in self._primes:
            self._hits += 1
            return True
        if n in self._composites or (n <= self._sieved_to):
            self._hits += 1
            return False

        self._misses += 1
        result = is_prime(n)
        if n <= self.cache_limit:
            (self._primes if result else self._composites).add(n)
        return result

    def pre_cache(self, limit: int) -> None:
        """Sieve all primes up to limit into the cache.

        Every number up to the sieved bound that is not in the prime set is
        known to be composite, so composites are not stored explicitly.
        """
        limit = min(int(limit), self.cache_limit)
        if limit <= self._sieved_to:
            return
        primes = generate_primes(max(limit, 2))
        self._primes.update(int(p) for p in primes)
        self._sieved_to = limit
        logger.debug("Pre-cached %d primes up to %d", len(primes), limit)

    def primes_up_to(self, limit: int) -> np.ndarray:
        """Return all primes <= limit, warming the cache as a side effect."""
        if limit < 2:
            return np.array([], dtype=np.int64)
        self.pre_cache(limit)
        if limit <= self._sieved_to:
            return np.array(sorted(p for p in self._primes if p <= limit), dtype=np.int64)
        return generate_primes(limit)

    def composites_up_to(self, limit: int) -> np.ndarray:
        """Return all composite numbers 4..limit."""
        if limit < 4:
            return np.array([], dtype=np.int64)
        mask = np.ones(limit + 1, dtype=bool)
        mask[:2] = False
        mask[self.primes_up_to(limit)] = False
        return np.nonzero(mask)[0].astype(np.int64)

    def sample_data(self, sample_size: int) -> tuple[np.ndarray, np.ndarray]:
        """Return the first sample_size primes and composites.

        Both are drawn from ``1..max(1000, 5 * sample_size)``; the bound is
        doubled until enough primes exist.

        Args:
            sample_size: Number of primes and of composites wanted.

        Returns:
            Tuple of (primes, composites) as int64 arrays.
        """
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {sample_size}")

        limit = max(1000, 5 * sample_size)
        primes = self.primes_up_to(limit)
        while len(primes) < sample_size:
            limit *= 2
            primes = self.primes_up_to(limit)

        composites = self.composites_up_to(limit)
        return primes[:sample_size], composites[:sample_size]

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            cached_primes=len(self._primes),
            cached_composites=len(self._composites),
        )

    def clear(self) -> None:
        """Drop all cached results and counters."""
        self._primes.clear()
        self._composites.clear()
        self._hits = 0
        self._misses = 0
        self._sieved_to = 1
