from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


logger = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return version("mcp-roll")
    except PackageNotFoundError:
        return "0+unknown"


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")


class History:
    """Append-only log of every value drawn, grouped by die size.

    Each ``write`` adds one line per die size:
    ``2024-05-01 18:30|0.1.0|20:14,3,20``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._draws: dict[int, list[int]] = {}

    def append_log(self, log: Mapping[int, Iterable[int]]) -> None:
        for sides, values in log.items():
            self._draws.setdefault(sides, []).extend(values)

    def write(self) -> None:
        if not self._draws:
            return

        stamp = f"{_timestamp()}|{_package_version()}"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            for sides, values in self._draws.items():
                f.write(f"{stamp}|{sides}:{','.join(str(v) for v in values)}\n")

        logger.info("appended %d history lines to %s", len(self._draws), self.path)
        self._draws.clear()
