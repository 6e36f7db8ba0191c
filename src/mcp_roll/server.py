from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import configure_logging, get_settings
from .dice import average_expressions, roll_expressions
from .errors import DiceError
from .formulas import FormulaStore
from .history import History
from .realizer import LoggingRealizer, RandomRealizer


mcp = FastMCP("mcp-roll")


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _store() -> FormulaStore:
    return FormulaStore(get_settings().config_path)


@mcp.tool()
def roll_dice(expressions: list[str], verbose: bool = False) -> dict[str, Any]:
    """Roll one or more dice expressions or stored aliases.

    Expressions look like 2d6. Shorthand like 20 means 1d20. Extensions:
    - a20 / s20: advantage / disadvantage (first die rolled twice, keep high / low)
    - 2d6r / 2d6r2: reroll 1s or 2s
    - 2d6! / 2d6!5: explode (roll again and add) on max values, or on 5+
    - 2d6+2: add 2 to total
    - 2d6x3: roll 2d6 three times

    Raises a hard error (exception) on invalid input.
    """

    settings = get_settings()
    realizer = LoggingRealizer(RandomRealizer())

    try:
        rows = roll_expressions(expressions, realizer=realizer, formulas=_store().aliases())
    except DiceError as e:
        # Fail-fast: surface stable error codes in the message.
        raise ValueError(str(e)) from None

    if not verbose:
        for row in rows:
            if row["alias"] is None:
                row["text"] = None

    if settings.history_enabled:
        history = History(settings.history_path)
        history.append_log(realizer.finalize())
        history.write()

    return {
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "rolls": rows,
    }


@mcp.tool()
def average_dice(expressions: list[str]) -> list[dict[str, Any]]:
    """Average value of each expression or alias, ignoring reroll and explode."""

    try:
        return average_expressions(expressions, formulas=_store().aliases())
    except DiceError as e:
        raise ValueError(str(e)) from None


@mcp.tool()
def add_alias(alias: str, expressions: list[str], comment: str | None = None) -> dict[str, Any]:
    """Store a set of expressions under an easily remembered alias."""

    try:
        formula = _store().add(alias, expressions, comment)
    except DiceError as e:
        raise ValueError(str(e)) from None
    return {"alias": alias, **formula.model_dump(mode="json")}


@mcp.tool()
def remove_alias(alias: str) -> dict[str, Any]:
    """Remove a previously stored alias."""

    try:
        removed = _store().remove(alias)
    except DiceError as e:
        raise ValueError(str(e)) from None
    return {"alias": alias, "removed": removed}


@mcp.tool()
def list_aliases() -> dict[str, Any]:
    """List stored aliases with their comments and expression texts."""

    try:
        aliases = _store().aliases()
    except DiceError as e:
        raise ValueError(str(e)) from None
    return {
        alias: {"comment": formula.comment, "expressions": [stored.text for stored in formula.expressions]}
        for alias, formula in sorted(aliases.items())
    }


def run() -> None:
    configure_logging(get_settings().log_level)
    # Default transport is stdio, which works well for MCP client integration.
    mcp.run()


if __name__ == "__main__":
    run()
