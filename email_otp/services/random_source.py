"""Random sources used to draw email codes."""

import random
import secrets
from typing import Protocol


class RandomSource(Protocol):
    """Anything able to draw a uniform integer in `[0, upper_bound)`."""

    def randbelow(self, upper_bound: int) -> int: ...


class SystemRandomSource:
    """Backed by the OS CSPRNG; holds no state, so concurrent attempts never interact."""

    def randbelow(self, upper_bound: int) -> int:
        return secrets.randbelow(upper_bound)


class SeededRandomSource:
    """Deterministic source for tests and local reproduction. Not for production."""

    def __init__(self, seed: int | str | None = None):
        self._random = random.Random(seed)

    def randbelow(self, upper_bound: int) -> int:
        return self._random.randrange(upper_bound)
