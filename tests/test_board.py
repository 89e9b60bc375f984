"""Tests for codequest.core.board – token pool and assignment table."""

from __future__ import annotations

import random
from collections import Counter
from itertools import permutations

import pytest

from codequest.core.board import Assignment, PuzzleBoard
from codequest.core.errors import InvalidAssignment

from conftest import make_puzzle


def _assert_injective(board: PuzzleBoard) -> None:
    pairs = board.assignments()
    blanks = [a.blank_index for a in pairs]
    tokens = [a.token_id for a in pairs]
    assert len(blanks) == len(set(blanks))
    assert len(tokens) == len(set(tokens))
    for a in pairs:
        assert board.blank_of(a.token_id) == a.blank_index
        assert not board.is_available(a.token_id)


@pytest.fixture()
def board() -> PuzzleBoard:
    return PuzzleBoard(make_puzzle(), rng=random.Random(3))


# ---------------------------------------------------------------------------
# initialize / shuffle
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_starts_empty(self, board: PuzzleBoard):
        assert board.assignments() == []
        assert not board.is_complete()
        assert board.first_empty_blank() == 0

    def test_all_tokens_available(self, board: PuzzleBoard):
        assert sorted(t.id for t in board.available_tokens()) == ["a", "b", "c"]

    def test_order_is_permutation_of_tokens(self, board: PuzzleBoard):
        assert sorted(t.id for t in board.token_order) == ["a", "b", "c"]
        assert board.pool_size == 3

    def test_seeded_shuffle_is_repeatable(self):
        a = PuzzleBoard(make_puzzle(), rng=random.Random(11)).token_order
        b = PuzzleBoard(make_puzzle(), rng=random.Random(11)).token_order
        assert a == b

    def test_every_permutation_reachable(self):
        rng = random.Random(5)
        seen = Counter(
            tuple(t.id for t in PuzzleBoard(make_puzzle(), rng=rng).token_order) for _ in range(3000)
        )
        assert set(seen) == set(permutations("abc"))
        # 500 expected per permutation
        assert all(350 < count < 650 for count in seen.values())

    def test_order_fixed_during_level(self, board: PuzzleBoard):
        order = board.token_order
        board.assign(0, "a")
        board.clear(0)
        assert board.token_order == order

    def test_initialize_resets_table(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.initialize(make_puzzle("p2"))
        assert board.assignments() == []
        assert board.puzzle.id == "p2"


# ---------------------------------------------------------------------------
# assign / clear
# ---------------------------------------------------------------------------

class TestAssign:
    def test_assign_returns_entry(self, board: PuzzleBoard):
        assert board.assign(1, "b") == Assignment(blank_index=1, token_id="b", text="range")

    def test_assign_consumes_token(self, board: PuzzleBoard):
        board.assign(0, "a")
        assert not board.is_available("a")
        assert board.token_for(0) == "a"
        assert board.filled_text(0) == "in"
        assert board.first_empty_blank() == 1

    def test_overwrite_releases_previous_token(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.assign(0, "c")
        assert board.is_available("a")
        assert board.token_for(0) == "c"
        assert board.pool_size == 3
        _assert_injective(board)

    def test_moving_token_empties_old_blank(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.assign(1, "a")
        assert board.token_for(0) is None
        assert board.token_for(1) == "a"
        assert board.blank_of("a") == 1
        _assert_injective(board)

    def test_move_onto_filled_blank_releases_its_token(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.assign(1, "b")
        board.assign(1, "a")
        assert board.token_for(0) is None
        assert board.token_for(1) == "a"
        assert board.is_available("b")
        _assert_injective(board)

    def test_same_token_same_blank_is_noop(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.assign(0, "a")
        assert board.assignments() == [Assignment(0, "a", "in")]

    def test_complete_after_all_blanks(self, board: PuzzleBoard):
        board.assign(0, "a")
        assert not board.is_complete()
        board.assign(1, "c")
        assert board.is_complete()
        assert board.first_empty_blank() is None

    def test_random_operations_keep_injective(self, board: PuzzleBoard):
        rng = random.Random(99)
        for _ in range(500):
            if rng.random() < 0.7:
                board.assign(rng.randrange(2), rng.choice("abc"))
            else:
                board.clear(rng.randrange(2))
            _assert_injective(board)
            assert len(board.available_tokens()) + len(board.assignments()) == 3


class TestClear:
    def test_clear_returns_token(self, board: PuzzleBoard):
        board.assign(0, "a")
        assert board.clear(0) == "a"
        assert board.is_available("a")

    def test_clear_empty_is_noop(self, board: PuzzleBoard):
        assert board.clear(1) is None
        assert board.assignments() == []

    def test_assign_then_clear_round_trip(self, board: PuzzleBoard):
        board.assign(1, "b")
        before = {t.id: board.is_available(t.id) for t in board.token_order}
        board.assign(0, "c")
        board.clear(0)
        after = {t.id: board.is_available(t.id) for t in board.token_order}
        assert before == after

    def test_clear_many(self, board: PuzzleBoard):
        board.assign(0, "a")
        board.assign(1, "b")
        assert board.clear_many([0, 1]) == ["a", "b"]
        assert board.assignments() == []

    def test_clear_many_skips_empty(self, board: PuzzleBoard):
        board.assign(1, "b")
        assert board.clear_many([0, 1]) == ["b"]


# ---------------------------------------------------------------------------
# integration faults
# ---------------------------------------------------------------------------

class TestInvalidAssignment:
    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_out_of_range_blank(self, board: PuzzleBoard, index):
        with pytest.raises(InvalidAssignment, match="out of range"):
            board.assign(index, "a")

    def test_unknown_token(self, board: PuzzleBoard):
        with pytest.raises(InvalidAssignment, match="Unknown token"):
            board.assign(0, "zzz")

    def test_rejected_assign_leaves_table_untouched(self, board: PuzzleBoard):
        board.assign(0, "a")
        with pytest.raises(InvalidAssignment):
            board.assign(0, "zzz")
        with pytest.raises(InvalidAssignment):
            board.assign(5, "b")
        assert board.assignments() == [Assignment(0, "a", "in")]
        assert board.is_available("b")

    def test_clear_out_of_range(self, board: PuzzleBoard):
        with pytest.raises(InvalidAssignment):
            board.clear(7)

    def test_is_available_unknown_token(self, board: PuzzleBoard):
        with pytest.raises(InvalidAssignment):
            board.is_available("zzz")

    def test_non_integer_blank(self, board: PuzzleBoard):
        with pytest.raises(InvalidAssignment):
            board.assign("0", "a")  # type: ignore[arg-type]
