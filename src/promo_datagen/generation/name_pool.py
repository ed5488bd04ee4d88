"""
CityNamePool - Pre-generated Faker city names for store display names.

Faker is called once per pool entry at construction; sampling afterwards
uses a seeded NumPy generator. Same seed, same pool, same sample order.

Usage:
    pool = CityNamePool(seed=42)
    cities = pool.sample_cities(50)  # 50 distinct cities while the pool allows
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from faker import Faker

if TYPE_CHECKING:
    from numpy.random import Generator

DEFAULT_POOL_SIZE = 1_000


class CityNamePool:
    """
    Pool of unique city names sampled with a seeded NumPy generator.

    Attributes:
        seed: Random seed for reproducibility
        cities: Pool of distinct city names
    """

    def __init__(self, seed: int = 42, pool_size: int = DEFAULT_POOL_SIZE, locale: str = "en_US") -> None:
        self.seed = seed
        self._rng: Generator = np.random.default_rng(seed)

        self._faker = Faker(locale)
        self._faker.seed_instance(seed)

        self.cities: list[str] = self._generate_unique(pool_size)

    def _generate_unique(self, size: int) -> list[str]:
        """Generate up to `size` distinct city names (Faker repeats eventually)."""
        seen: dict[str, None] = {}
        # Bounded attempts; small locales run out of distinct names
        for _ in range(size * 5):
            seen.setdefault(self._faker.city(), None)
            if len(seen) >= size:
                break
        return list(seen)

    def __len__(self) -> int:
        return len(self.cities)

    def sample_cities(self, n: int) -> list[str]:
        """
        Sample n city names.

        Draws without replacement while the pool is large enough, otherwise
        with replacement.

        Args:
            n: Number of names

        Returns:
            List of city names
        """
        if n <= 0:
            return []
        replace = n > len(self.cities)
        indices = self._rng.choice(len(self.cities), size=n, replace=replace)
        return [self.cities[i] for i in indices]

    def reset(self) -> None:
        """Reset the sampling generator to the initial seed."""
        self._rng = np.random.default_rng(self.seed)
