from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .errors import DegenerateExpression
from .formulas import Formula
from .models import Advantage, Expression, RealizedExpression
from .parser import ExpressionParser, expand_expressions
from .realizer import Realizer


logger = logging.getLogger(__name__)


def _first_draw(expression: Expression, realizer: Realizer, advantage: Advantage) -> int:
    if advantage is Advantage.ADVANTAGE:
        return max(realizer.next(expression.sides), realizer.next(expression.sides))
    if advantage is Advantage.DISADVANTAGE:
        return min(realizer.next(expression.sides), realizer.next(expression.sides))
    return realizer.next(expression.sides)


def realize(expression: Expression, realizer: Realizer) -> RealizedExpression:
    """Roll ``expression`` against ``realizer``.

    Advantage and disadvantage apply to the first die only; later dice in the
    same expression draw once. For each die, values at or below the reroll
    threshold are discarded and redrawn; every kept value at or above the
    explode threshold adds another draw, which is itself subject to reroll and
    explode. There is no iteration cap: an expression whose ``terminates`` is
    False never returns.
    """
    values: list[int] = []
    advantage = expression.advantage

    for _ in range(expression.count):
        value = _first_draw(expression, realizer, advantage)
        advantage = Advantage.NORMAL

        while True:
            if expression.should_reroll(value):
                value = realizer.next(expression.sides)
                continue

            values.append(value)

            if expression.should_explode(value):
                value = realizer.next(expression.sides)
                continue

            break

    return RealizedExpression(values=tuple(values), sides=expression.sides, modifier=expression.modifier)


def _resolve(
    candidates: Iterable[str],
    parser: ExpressionParser,
    formulas: Mapping[str, Formula],
) -> Iterator[tuple[str, str | None, str | None, Expression]]:
    """Yield ``(text, alias, comment, expression)`` for each expanded candidate."""
    for candidate in expand_expressions(candidates, aliases=formulas):
        formula = formulas.get(candidate)
        if formula is None:
            yield candidate, None, None, parser.parse(candidate)
            continue

        for stored in formula.expressions:
            # Alias files may predate strict parsing or be edited by hand.
            if parser.strict and not stored.expression.terminates:
                raise DegenerateExpression(stored.text, stored.expression)
            yield stored.text, candidate, formula.comment, stored.expression


def describe_result(result: RealizedExpression) -> dict[str, Any]:
    return {
        "total": result.sum(),
        "modifier": result.modifier,
        "critical": result.is_critical(),
        "dice": [{"value": value, "highlight": highlight.value} for highlight, value in result.results()],
    }


def roll_expressions(
    candidates: Iterable[str],
    *,
    realizer: Realizer,
    parser: ExpressionParser | None = None,
    formulas: Mapping[str, Formula] | None = None,
) -> list[dict[str, Any]]:
    """Parse (or look up), then roll every candidate. Raises DiceError on the first invalid one."""
    parser = parser or ExpressionParser(strict=True)
    rows: list[dict[str, Any]] = []

    for text, alias, comment, expression in _resolve(candidates, parser, formulas or {}):
        result = realize(expression, realizer)
        logger.debug("rolled %r -> %s", text, result)
        rows.append({"text": text, "alias": alias, "comment": comment, **describe_result(result)})

    return rows


def average_expressions(
    candidates: Iterable[str],
    *,
    parser: ExpressionParser | None = None,
    formulas: Mapping[str, Formula] | None = None,
) -> list[dict[str, Any]]:
    """Average of each distinct expression text, ignoring reroll and explode."""
    parser = parser or ExpressionParser()
    rows: list[dict[str, Any]] = []
    seen: set[str] = set()

    for text, _alias, _comment, expression in _resolve(candidates, parser, formulas or {}):
        if text in seen:
            continue
        seen.add(text)
        rows.append({"text": text, "average": round(expression.average_result(), 2)})

    return rows
