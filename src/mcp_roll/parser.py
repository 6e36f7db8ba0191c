from __future__ import annotations

import logging
import re
from collections.abc import Container, Iterable, Iterator

from .errors import BadExpression, BadInteger, DegenerateExpression
from .models import Advantage, Expression


logger = logging.getLogger(__name__)

# Captured integers must fit in a signed 32-bit int.
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
MAX_REPEAT = 100

_BOUNDED_RE = re.compile(r"^(?P<adv>[Aa]|[Ss])?(?:(?P<count>\d+)[Dd])?[Dd]?(?P<sides>\d+)", re.ASCII)
_MODIFIER_RE = re.compile(r"[+-]\d+", re.ASCII)
_REROLL_RE = re.compile(r"r(?P<value>\d+)?", re.ASCII)
_EXPLODE_RE = re.compile(r"(?:!|e)(?P<value>\d+)?", re.ASCII)
_COUNTED_RE = re.compile(r"^(?P<expr>.+?)[*xX](?P<times>\d+)$")

_ADVANTAGE_MARKERS = {
    "a": Advantage.ADVANTAGE,
    "s": Advantage.DISADVANTAGE,
}


def _parse_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise BadInteger(text, exc) from exc

    if not INT_MIN <= value <= INT_MAX:
        cause = OverflowError(f"{text} does not fit in a 32-bit integer")
        raise BadInteger(text, cause) from cause
    return value


def _parse_threshold(pattern: re.Pattern[str], text: str, default: int) -> int | None:
    m = pattern.search(text)
    if m is None:
        return None
    value = m.group("value")
    return _parse_int(value) if value else default


class ExpressionParser:
    """Compiles dice notation such as ``2d6r!5+2`` or ``a20`` into an Expression.

    The bounded term is anchored at the start of the text. The modifier, reroll
    and explode tokens are each the first match anywhere in the text, so their
    relative order does not matter (``2d6r2!5`` and ``2d6!5r2`` are equal).

    With ``strict=True`` expressions that could never finish rolling (for
    example ``d6r6``) are rejected with DegenerateExpression.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict

    def parse(self, text: str) -> Expression:
        m = _BOUNDED_RE.match(text)
        if m is None:
            raise BadExpression(text)

        adv = m.group("adv")
        advantage = _ADVANTAGE_MARKERS[adv.lower()] if adv else Advantage.NORMAL

        count_str = m.group("count")
        count = _parse_int(count_str) if count_str else 1
        sides = _parse_int(m.group("sides"))
        if count == 0 or sides == 0:
            raise BadExpression(text)

        modifier = 0
        mod = _MODIFIER_RE.search(text)
        if mod:
            modifier = _parse_int(mod.group())

        expression = Expression(
            count=count,
            sides=sides,
            modifier=modifier,
            advantage=advantage,
            reroll=_parse_threshold(_REROLL_RE, text, 1),
            explode=_parse_threshold(_EXPLODE_RE, text, sides),
        )

        if self.strict and not expression.terminates:
            raise DegenerateExpression(text, expression)

        logger.debug("parsed %r -> %s", text, expression)
        return expression


_DEFAULT_PARSER = ExpressionParser()


def parse_expression(text: str) -> Expression:
    return _DEFAULT_PARSER.parse(text)


def expand_expressions(candidates: Iterable[str], aliases: Container[str] = ()) -> Iterator[str]:
    """Expand counted candidates: ``2d6*3`` (or ``2d6x3``) yields ``2d6`` three times.

    Names in ``aliases`` are never split, so an alias such as ``box2`` passes through.
    At most MAX_REPEAT copies are produced per candidate.
    """
    for candidate in candidates:
        m = None if candidate in aliases else _COUNTED_RE.match(candidate)
        if m is None:
            yield candidate
            continue

        times = int(m.group("times"))
        if times > MAX_REPEAT:
            raise BadExpression(candidate)
        for _ in range(times):
            yield m.group("expr")
