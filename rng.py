# /// script
# requires-python = ">=3.12"
# dependencies = []
# ///
"""Deterministic random number generation for the simulation engine.

SplitMix64 is a small counter-based generator: the state advances by a fixed
odd constant and every output is the state pushed through two xor-shift /
multiply rounds. Given the same 64-bit seed it always yields the same
stream, which is what makes every trace step reproducible.
"""

from __future__ import annotations

import random

MASK_64 = (1 << 64) - 1

_GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_MIX_1 = 0xBF58476D1CE4E5B9
_MIX_2 = 0x94D049BB133111EB


class SplitMix64:
    """Seeded, non-cryptographic 64-bit generator."""

    def __init__(self, seed: int):
        self._state = seed & MASK_64

    def next_uint64(self) -> int:
        self._state = (self._state + _GOLDEN_GAMMA) & MASK_64
        z = self._state
        z = ((z ^ (z >> 30)) * _MIX_1) & MASK_64
        z = ((z ^ (z >> 27)) * _MIX_2) & MASK_64
        return z ^ (z >> 31)

    def next_int(self, upper_bound: int) -> int:
        """Uniform integer in ``[0, upper_bound)``."""
        if upper_bound <= 0:
            raise ValueError(f"upper_bound must be positive, got {upper_bound}")
        return self.next_uint64() % upper_bound

    def next_double(self) -> float:
        """Uniform float in ``[0, 1)`` with 53 bits of precision."""
        return (self.next_uint64() >> 11) / float(1 << 53)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

def draw_seed() -> int:
    """Return a fresh non-zero 64-bit seed for a new or reset game."""
    return random.randint(1, MASK_64)


def state_key(inning: int, outs: int, balls: int, strikes: int) -> int:
    """Composite key used to re-derive the working seed for a single pitch."""
    return (inning * 1000 + outs * 100 + balls * 10 + strikes) & MASK_64


def derive_seed(seed: int, key: int) -> int:
    return (seed ^ key) & MASK_64
