"""
High-Score Store — one persisted integer, read once at engine start-up and
written at most once per session end.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from ..errors import StoreUnavailable


class HighScoreStore(Protocol):
    def get_high_score(self) -> int: ...

    def set_high_score(self, value: int) -> None: ...


class JsonHighScoreStore:
    """Persists {"high_score": n} to a JSON file (data/high_score.json by default)."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_high_score(self) -> int:
        if not self._path.exists():
            return 0
        try:
            saved = json.loads(self._path.read_text())
            return max(0, int(saved.get("high_score", 0)))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise StoreUnavailable(f"cannot read {self._path}: {e}") from e

    def set_high_score(self, value: int) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"high_score": int(value)}, indent=2))
        except OSError as e:
            raise StoreUnavailable(f"cannot write {self._path}: {e}") from e


class InMemoryHighScoreStore:

    def __init__(self, initial: int = 0):
        self.value = initial
        self.writes = 0

    def get_high_score(self) -> int:
        return self.value

    def set_high_score(self, value: int) -> None:
        self.value = value
        self.writes += 1
