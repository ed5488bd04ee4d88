"""
SeededSequence - Deterministic pseudo-random stream for data generation.

A 32-bit linear-congruential generator. Unlike numpy's Generator its
output depends only on the integer seed, so the same seed reproduces the
same dataset on every platform and Python version.

Usage:
    seq = SeededSequence(42)
    seq.next()              # float in [0, 1)
    seq.next_int(1, 6)      # 1..6 inclusive
    seq.choice(["a", "b"])  # one element

    # Independent sub-stream per store/week
    sub = SeededSequence(derive_seed(42, store_index, week))
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from ..errors import ConfigurationError

T = TypeVar("T")

# Numerical Recipes LCG constants
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2**32
MASK_32 = LCG_MODULUS - 1

# Replacement for a zero seed
ZERO_SEED_FALLBACK = 0x9E3779B9


def normalize_seed(seed: int) -> int:
    """
    Map any integer onto a non-zero 32-bit seed.

    Negative seeds wrap (two's complement) and zero is replaced with a fixed
    constant, so no input is rejected.
    """
    state = int(seed) & MASK_32
    return state if state != 0 else ZERO_SEED_FALLBACK


def derive_seed(base_seed: int, *components: int) -> int:
    """
    Derive an independent sub-seed from a base seed and integer components.

    Used to give each (store, week) combination its own stream, so chunks
    can be generated in any order with identical results.

    Args:
        base_seed: Run seed
        *components: Integers identifying the sub-stream (e.g. store index, week)

    Returns:
        Normalized 32-bit seed
    """
    state = normalize_seed(base_seed)
    for component in components:
        state = (state ^ (int(component) & MASK_32)) * 0x01000193 & MASK_32
        # murmur3 finalizer
        state ^= state >> 16
        state = (state * 0x85EBCA6B) & MASK_32
        state ^= state >> 13
        state = (state * 0xC2B2AE35) & MASK_32
        state ^= state >> 16
    return normalize_seed(state)


class SeededSequence:
    """
    Deterministic float stream in [0, 1).

    Attributes:
        seed: Normalized seed the sequence started from
        draws: Number of values drawn since the last reset
    """

    __slots__ = ("seed", "draws", "_state")

    def __init__(self, seed: int = 42) -> None:
        self.seed = normalize_seed(seed)
        self._state = self.seed
        self.draws = 0

    def next(self) -> float:
        """Return the next value in [0, 1)."""
        self._state = (LCG_MULTIPLIER * self._state + LCG_INCREMENT) % LCG_MODULUS
        self.draws += 1
        return self._state / LCG_MODULUS

    def next_float(self, low: float, high: float) -> float:
        """Return a value in [low, high)."""
        return low + self.next() * (high - low)

    def next_int(self, low: int, high: int) -> int:
        """
        Return an integer in [low, high] (both inclusive).

        Raises:
            ConfigurationError: If high < low
        """
        if high < low:
            raise ConfigurationError(f"Empty integer range [{low}, {high}]")
        return low + int(self.next() * (high - low + 1))

    def choice(self, items: Sequence[T]) -> T:
        """
        Pick one element of a non-empty sequence.

        Raises:
            ConfigurationError: If items is empty
        """
        if not items:
            raise ConfigurationError("Cannot choose from an empty list")
        return items[int(self.next() * len(items))]

    def advance(self, steps: int) -> None:
        """Skip ahead by `steps` draws."""
        for _ in range(steps):
            self.next()

    def reset(self) -> None:
        """Rewind to the original seed."""
        self._state = self.seed
        self.draws = 0

    def __repr__(self) -> str:
        return f"SeededSequence(seed={self.seed}, draws={self.draws})"
