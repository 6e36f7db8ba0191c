from __future__ import annotations

import logging
import secrets
from collections import defaultdict
from collections.abc import Iterable, Iterator
from typing import Protocol

from .errors import RealizerExhausted


logger = logging.getLogger(__name__)


class Realizer(Protocol):
    def next(self, max: int) -> int:
        """Return a value uniformly distributed over [1, max], or [max, -1] when max is negative."""
        ...


class IntegerSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


def _bounded_stream(rng: IntegerSource, max: int) -> Iterator[int]:
    low, high = (1, max) if max > 0 else (max, -1)
    while True:
        yield rng.randint(low, high)


class RandomRealizer:
    """Draws from one lazily created bounded stream per die size.

    Not safe for concurrent use: every draw may insert into the per-size cache.
    """

    def __init__(self, rng: IntegerSource | None = None) -> None:
        self._rng = rng if rng is not None else secrets.SystemRandom()
        self._streams: dict[int, Iterator[int]] = {}

    def next(self, max: int) -> int:
        if max == 0:
            raise ValueError("Cannot roll a die with zero sides.")

        stream = self._streams.get(max)
        if stream is None:
            stream = self._streams[max] = _bounded_stream(self._rng, max)
        return next(stream)


class SequenceRealizer:
    """Replays scripted values in order, ignoring the requested die size."""

    def __init__(self, values: Iterable[int]) -> None:
        self._values = iter(values)

    def next(self, max: int) -> int:
        try:
            return next(self._values)
        except StopIteration:
            raise RealizerExhausted(f"No scripted value left for a d{max}.") from None


class LoggingRealizer:
    """Forwards draws to another realizer and records every value by die size."""

    def __init__(self, realizer: Realizer) -> None:
        self._realizer = realizer
        self._log: defaultdict[int, list[int]] = defaultdict(list)

    def next(self, max: int) -> int:
        value = self._realizer.next(max)
        self._log[max].append(value)
        logger.debug("d%d -> %d", max, value)
        return value

    def finalize(self) -> dict[int, list[int]]:
        return {sides: list(values) for sides, values in self._log.items()}
