"""Seeded pseudo-random source used to make a whole session replayable."""

from __future__ import annotations

MASK_32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


class InvalidRangeError(ValueError):
    """Raised when a bounded draw is requested with ``high < low``."""

    def __init__(self, low: int, high: int):
        self.low = low
        self.high = high
        super().__init__(f"Invalid range: max ({high}) is lower than min ({low})")


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK_32


class Mulberry32:
    """Mulberry32 generator.

    One 32-bit state word is advanced by a fixed odd constant on every call and
    then mixed with xor-shifts and odd multiplies. The output matches the
    public-domain JavaScript version bit for bit, so a seed replays identically
    in either runtime. Not suitable for anything security related.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & MASK_32

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        """Advance the state and return a float in ``[0, 1)``."""
        self._state = (self._state + _INCREMENT) & MASK_32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK_32
        return ((t ^ (t >> 14)) & MASK_32) / _TWO_POW_32

    __call__ = next


def random_int(rng: Mulberry32, low: int, high: int) -> int:
    """Draw an integer in ``[low, high]`` (both inclusive)."""
    if high < low:
        raise InvalidRangeError(low, high)
    return low + int(rng.next() * (high - low + 1))
