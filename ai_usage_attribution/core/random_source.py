"""
Deterministic pseudo-random source.

Seeded, reproducible streams of unit-interval floats. Fabricated data must
be identical across independent requests for the same seed, so nothing in
this package may use non-reproducible randomness.
"""

from typing import Iterator

_MASK_32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_GOLDEN_GAMMA = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK_32


def fnv1a_32(text: str) -> int:
    """FNV-1a hash of the text's UTF-16 code units, as an unsigned 32-bit int."""
    h = _FNV_OFFSET
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = _imul(h, _FNV_PRIME)
    return h


class Mulberry32(Iterator[float]):
    """Infinite stream of floats in [0, 1) from a 32-bit state.

    The same initial state always yields the same sequence.
    """

    def __init__(self, state: int):
        self._initial = state & _MASK_32
        self._state = self._initial

    @property
    def initial_state(self) -> int:
        return self._initial

    def restart(self) -> None:
        """Rewind to the first value of the stream."""
        self._state = self._initial

    def __iter__(self) -> "Mulberry32":
        return self

    def __next__(self) -> float:
        self._state = (self._state + _GOLDEN_GAMMA) & _MASK_32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK_32
        return ((t ^ (t >> 14)) & _MASK_32) / 4294967296

    def __call__(self) -> float:
        return next(self)


def substream(seed: str, day: str, user: str) -> Mulberry32:
    """Independent stream for one (day, user) pair under a base seed."""
    return Mulberry32(fnv1a_32(seed) ^ fnv1a_32(f"{day}::{user}"))
