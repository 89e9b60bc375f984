"""Tests for codequest.core.rules – ranks and the category registry."""

from __future__ import annotations

import pytest

from codequest.core.rules import CATEGORIES, DEFAULT_CATEGORY, RANKS, rank_for


class TestRankFor:
    @pytest.mark.parametrize(
        "score, letter",
        [(200, "S"), (120, "S"), (119, "A"), (90, "A"), (89, "B"), (60, "B"), (59, "C"), (0, "C"), (-5, "C")],
    )
    def test_thresholds(self, score, letter):
        assert rank_for(score)[0] == letter

    def test_thresholds_descend(self):
        thresholds = [t for t, _, _ in RANKS]
        assert thresholds == sorted(thresholds, reverse=True)


class TestCategories:
    def test_default_is_registered(self):
        assert DEFAULT_CATEGORY in CATEGORIES

    def test_keys_match(self):
        for key, category in CATEGORIES.items():
            assert category.key == key
            assert category.file_name.endswith(".yaml")
