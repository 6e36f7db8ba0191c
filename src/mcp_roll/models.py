from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import TypeAdapter


class Advantage(str, Enum):
    ADVANTAGE = "Advantage"
    DISADVANTAGE = "Disadvantage"
    NORMAL = "Normal"


class Highlight(str, Enum):
    HIGH = "high"
    LOW = "low"
    NORMAL = "normal"


@dataclass(frozen=True)
class Expression:
    count: int
    sides: int
    modifier: int = 0
    advantage: Advantage = Advantage.NORMAL
    reroll: int | None = None
    explode: int | None = None

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"count must be at least 1, got {self.count}")
        if self.sides == 0:
            raise ValueError("sides must be non-zero")

    def should_reroll(self, value: int) -> bool:
        return self.reroll is not None and self.reroll >= value

    def should_explode(self, value: int) -> bool:
        return self.explode is not None and value >= self.explode

    def average_result(self) -> float:
        """Textbook mean of the dice plus modifier. Reroll and explode are ignored."""
        return ((1 + self.sides) * self.count + self.modifier * 2) / 2

    @property
    def terminates(self) -> bool:
        """True when at least one face is kept without rerolling or exploding."""
        low, high = (1, self.sides) if self.sides > 0 else (self.sides, -1)
        if self.reroll is not None:
            low = max(low, self.reroll + 1)
        if self.explode is not None:
            high = min(high, self.explode - 1)
        return low <= high


@dataclass(frozen=True)
class RealizedExpression:
    values: tuple[int, ...]
    sides: int
    modifier: int = 0

    def sum(self) -> int:
        return sum(self.values) + self.modifier

    def results(self) -> Iterator[tuple[Highlight, int]]:
        for value in self.values:
            if value == 1:
                yield Highlight.LOW, value
            elif value == self.sides:
                yield Highlight.HIGH, value
            else:
                yield Highlight.NORMAL, value

    def is_critical(self) -> bool:
        # A lone max roll; an exploded max leaves more than one value behind.
        return len(self.values) == 1 and self.sum() == self.sides + self.modifier


_EXPRESSION_ADAPTER: TypeAdapter[Expression] = TypeAdapter(Expression)


def dump_expression(expression: Expression) -> dict[str, Any]:
    return _EXPRESSION_ADAPTER.dump_python(expression, mode="json")


def load_expression(data: Mapping[str, Any]) -> Expression:
    payload = dict(data)
    # Older alias files name the die size "max".
    if "max" in payload and "sides" not in payload:
        payload["sides"] = payload.pop("max")
    return _EXPRESSION_ADAPTER.validate_python(payload)
