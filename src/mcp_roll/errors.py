from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Expression


class DiceError(ValueError):
    """User-facing validation errors (fail-fast, no roll performed)."""


class ParseError(DiceError):
    """Raised when dice notation cannot be compiled into an Expression."""


class BadExpression(ParseError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(
            f"[BAD_EXPRESSION] Unable to parse expression: {text!r}. Example: '2d6+3', 'a20' or '4d6r!'."
        )


class BadInteger(ParseError):
    def __init__(self, text: str, cause: Exception) -> None:
        self.text = text
        self.cause = cause
        super().__init__(f"[BAD_INTEGER] Bad integer: {text!r}; {cause}")


class DegenerateExpression(ParseError):
    """Every possible roll would be rerolled or exploded, so rolling never ends."""

    def __init__(self, text: str, expression: Expression) -> None:
        self.text = text
        self.expression = expression
        super().__init__(
            f"[DEGENERATE_EXPRESSION] {text!r} can never finish rolling: every value on a d{expression.sides} "
            "is rerolled or explodes. Example: '2d6r2!5'."
        )


class FormulaStoreError(DiceError):
    """The alias file exists but cannot be read back."""


class RealizerExhausted(DiceError):
    """A scripted realizer was asked for more values than it was given."""
