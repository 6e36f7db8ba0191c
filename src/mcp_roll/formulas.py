"""JSON-backed alias ("formula") storage.

A formula is a named, optionally commented list of expressions. Each entry keeps
the text the user typed next to its compiled Expression, so stored aliases roll
without being re-parsed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from .errors import FormulaStoreError
from .models import Expression, dump_expression, load_expression
from .parser import ExpressionParser


logger = logging.getLogger(__name__)


class StoredExpression(BaseModel):
    text: str
    expression: Expression

    @field_validator("expression", mode="before")
    @classmethod
    def _load_expression(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return load_expression(value)
        return value

    @field_serializer("expression")
    def _dump_expression(self, expression: Expression) -> dict[str, Any]:
        return dump_expression(expression)


class Formula(BaseModel):
    comment: str | None = None
    expressions: list[StoredExpression] = Field(default_factory=list)


class FormulaBook(BaseModel):
    # Unknown top-level sections (e.g. "colors") survive a rewrite.
    model_config = ConfigDict(extra="allow")

    formulas: dict[str, Formula] = Field(default_factory=dict)

    @classmethod
    def from_json_data(cls, data: Any) -> FormulaBook:
        """Build a book from decoded JSON, upgrading the legacy bare ``{alias: formula}`` layout."""
        if isinstance(data, dict) and "formulas" not in data:
            data = {"formulas": data}
        return cls.model_validate(data)


class FormulaStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> FormulaBook:
        if not self.path.exists():
            return FormulaBook()

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return FormulaBook.from_json_data(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise FormulaStoreError(f"[FORMULA_STORE] Could not read aliases from {self.path}: {exc}") from exc

    def save(self, book: FormulaBook) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(book.model_dump(mode="json"), f, indent=2)
            f.write("\n")

    def get(self, alias: str) -> Formula | None:
        return self.load().formulas.get(alias)

    def aliases(self) -> dict[str, Formula]:
        return self.load().formulas

    def add(
        self,
        alias: str,
        texts: Iterable[str],
        comment: str | None = None,
        *,
        parser: ExpressionParser | None = None,
    ) -> Formula:
        """Compile every text and store them under ``alias``, replacing any previous entry.

        Nothing is written if any text fails to parse.
        """
        parser = parser or ExpressionParser(strict=True)
        expressions = [StoredExpression(text=text, expression=parser.parse(text)) for text in texts]
        formula = Formula(comment=comment, expressions=expressions)

        book = self.load()
        replaced = alias in book.formulas
        book.formulas[alias] = formula
        self.save(book)

        logger.info("%s alias %r (%d expressions)", "replaced" if replaced else "added", alias, len(expressions))
        return formula

    def remove(self, alias: str) -> bool:
        book = self.load()
        if book.formulas.pop(alias, None) is None:
            return False

        self.save(book)
        logger.info("removed alias %r", alias)
        return True
