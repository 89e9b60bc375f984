"""Tests for codequest.core.progress – best score persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from codequest.core.progress import BestStats, ProgressStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def progress_file(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "progress.json"


@pytest.fixture()
def store(progress_file: Path) -> ProgressStore:
    """ProgressStore backed by a temp file so tests don't touch ~/.codequest."""
    return ProgressStore(file_path=progress_file)


# ---------------------------------------------------------------------------
# BestStats dataclass
# ---------------------------------------------------------------------------

class TestBestStats:
    def test_defaults(self):
        stats = BestStats()
        assert stats.best_score == 0
        assert stats.games_played == 0


# ---------------------------------------------------------------------------
# read / write
# ---------------------------------------------------------------------------

class TestReadWrite:
    def test_fresh_store_is_empty(self, store: ProgressStore):
        assert store.read_best("python") == BestStats()

    def test_creates_parent_directory(self, store: ProgressStore, progress_file: Path):
        assert progress_file.parent.is_dir()

    def test_first_result(self, store: ProgressStore):
        assert store.write_best("python", 87) == BestStats(best_score=87, games_played=1)

    def test_best_only_rises(self, store: ProgressStore):
        store.write_best("python", 87)
        store.write_best("python", 40)
        assert store.read_best("python") == BestStats(best_score=87, games_played=2)
        store.write_best("python", 120)
        assert store.read_best("python").best_score == 120

    def test_categories_are_independent(self, store: ProgressStore):
        store.write_best("python", 50)
        store.write_best("csharp", 70)
        assert store.read_best("python").best_score == 50
        assert store.read_best("csharp").best_score == 70

    def test_read_returns_copy(self, store: ProgressStore):
        store.write_best("python", 10)
        stats = store.read_best("python")
        stats.best_score = 999
        assert store.read_best("python").best_score == 10

    def test_reset(self, store: ProgressStore, progress_file: Path):
        store.write_best("python", 10)
        store.write_best("csharp", 20)
        store.reset()
        assert store.read_best("python") == BestStats()
        assert store.read_best("csharp") == BestStats()
        assert ProgressStore(file_path=progress_file).read_best("python") == BestStats()


# ---------------------------------------------------------------------------
# persistence
# ---------------------------------------------------------------------------

class TestPersistence:
    def test_survives_restart(self, store: ProgressStore, progress_file: Path):
        store.write_best("csharp", 66)
        reloaded = ProgressStore(file_path=progress_file)
        assert reloaded.read_best("csharp") == BestStats(best_score=66, games_played=1)

    def test_file_format(self, store: ProgressStore, progress_file: Path):
        store.write_best("python", 33)
        payload = json.loads(progress_file.read_text(encoding="utf-8"))
        assert payload == {"categories": {"python": {"best_score": 33, "games_played": 1}}}

    def test_corrupt_file_starts_fresh(self, progress_file: Path, caplog: pytest.LogCaptureFixture):
        progress_file.parent.mkdir(parents=True)
        progress_file.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="codequest.core.progress"):
            store = ProgressStore(file_path=progress_file)
        assert store.read_best("python") == BestStats()
        assert "Could not load progress" in caplog.text

    def test_non_object_payload(self, progress_file: Path):
        progress_file.parent.mkdir(parents=True)
        progress_file.write_text("[1, 2]", encoding="utf-8")
        assert ProgressStore(file_path=progress_file).read_best("python") == BestStats()

    def test_malformed_entry_skipped(self, progress_file: Path):
        progress_file.parent.mkdir(parents=True)
        progress_file.write_text(
            json.dumps(
                {
                    "categories": {
                        "python": {"best_score": "lots"},
                        "csharp": {"best_score": 12, "games_played": 3},
                        "rust": "nope",
                    }
                }
            ),
            encoding="utf-8",
        )
        store = ProgressStore(file_path=progress_file)
        assert store.read_best("python") == BestStats()
        assert store.read_best("csharp") == BestStats(best_score=12, games_played=3)
        assert store.read_best("rust") == BestStats()

    def test_corrupt_file_overwritten_on_save(self, progress_file: Path):
        progress_file.parent.mkdir(parents=True)
        progress_file.write_text("garbage", encoding="utf-8")
        ProgressStore(file_path=progress_file).write_best("python", 5)
        assert ProgressStore(file_path=progress_file).read_best("python").best_score == 5
