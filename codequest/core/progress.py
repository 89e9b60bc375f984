from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class BestStats:
    best_score: int = 0
    games_played: int = 0


class ProgressStore:
    """Best score and games played per category. Persists to disk across app restarts.
    File: ~/.codequest/progress.json unless another path is given."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".codequest" / "progress.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._stats = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def read_best(self, category: str) -> BestStats:
        current = self._stats.get(category, BestStats())
        return BestStats(best_score=current.best_score, games_played=current.games_played)

    def write_best(self, category: str, final_score: int) -> BestStats:
        """Record a finished game: the best score only ever rises, games played always counts up."""
        current = self._stats.get(category, BestStats())
        current.best_score = max(current.best_score, int(final_score))
        current.games_played += 1
        self._stats[category] = current
        self._save()
        logger.info(
            "Saved %s result %d (best %d, %d games)",
            category,
            final_score,
            current.best_score,
            current.games_played,
        )
        return self.read_best(category)

    def reset(self) -> None:
        """Forget every category's stats."""
        self._stats = {}
        self._save()
        logger.info("Cleared all progress in %s", self._file_path)

    def _load(self) -> Dict[str, BestStats]:
        stats: Dict[str, BestStats] = {}
        if not self._file_path.exists():
            return stats
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return stats
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: expected an object", self._file_path)
            return stats

        categories = payload.get("categories", {})
        if not isinstance(categories, dict):
            return stats
        for key, value in categories.items():
            if not isinstance(value, dict):
                continue
            try:
                stats[key] = BestStats(
                    best_score=int(value.get("best_score", 0)),
                    games_played=int(value.get("games_played", 0)),
                )
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed stats for %s in %s", key, self._file_path)
        return stats

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"categories": {key: asdict(value) for key, value in self._stats.items()}}
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
