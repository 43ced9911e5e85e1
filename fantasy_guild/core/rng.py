from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Protocol


def seed_to_uint32(seed: int | str) -> int:
    text = str(seed).encode("utf-8")
    digest = hashlib.sha256(text).hexdigest()
    value = int(digest[:8], 16)
    return value if value != 0 else 0x9E3779B9


class RandomSource(Protocol):
    def next_float(self) -> float: ...

    def randint(self, low: int, high: int) -> int: ...


@dataclass(slots=True)
class DeterministicRNG:
    """xorshift32 generator whose state round-trips through GuildState."""

    seed: int | str
    state: int
    calls: int = 0

    @classmethod
    def from_seed(cls, seed: int | str) -> "DeterministicRNG":
        return cls(seed=seed, state=seed_to_uint32(seed), calls=0)

    def _next_uint32(self) -> int:
        value = self.state & 0xFFFFFFFF
        value ^= (value << 13) & 0xFFFFFFFF
        value ^= (value >> 17) & 0xFFFFFFFF
        value ^= (value << 5) & 0xFFFFFFFF
        value &= 0xFFFFFFFF
        self.state = value if value != 0 else 0x6D2B79F5
        self.calls += 1
        return self.state

    def next_float(self) -> float:
        return self._next_uint32() / 2**32

    def randint(self, low: int, high: int) -> int:
        """Inclusive on both ends; a collapsed range returns ``low`` without drawing."""
        if high <= low:
            return low
        return low + int(self.next_float() * (high - low + 1))


def roll_percent(rng: RandomSource, chance: float) -> bool:
    if chance >= 100:
        return True
    if chance <= 0:
        return False
    return rng.next_float() * 100 < chance


def roll_fraction(rng: RandomSource, chance: float) -> bool:
    if chance <= 0:
        return False
    return rng.next_float() < chance
