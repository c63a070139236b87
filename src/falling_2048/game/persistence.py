"""Best-score storage.

A store only has to remember one integer per difficulty tier. Missing
entries read as 0.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Protocol, Union

from .difficulty import Difficulty


logger = logging.getLogger(__name__)


class BestScoreStore(Protocol):
    def load(self, difficulty: Difficulty) -> int: ...

    def save(self, difficulty: Difficulty, score: int) -> None: ...


class InMemoryBestScoreStore:
    def __init__(self, scores: Dict[Difficulty, int] | None = None) -> None:
        self.scores: Dict[Difficulty, int] = dict(scores or {})

    def load(self, difficulty: Difficulty) -> int:
        return int(self.scores.get(Difficulty(difficulty), 0))

    def save(self, difficulty: Difficulty, score: int) -> None:
        self.scores[Difficulty(difficulty)] = int(score)


class JsonFileBestScoreStore:
    """Keeps best scores in a small JSON object keyed by tier name."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring unreadable best-score file %s", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed best-score file %s", self.path)
            return {}
        return data

    def load(self, difficulty: Difficulty) -> int:
        value = self._read().get(Difficulty(difficulty).value, 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return 0

    def save(self, difficulty: Difficulty, score: int) -> None:
        data = self._read()
        data[Difficulty(difficulty).value] = int(score)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
