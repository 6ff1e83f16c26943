"""Tests for kuhn_solver/engine/game_state.py — players, moves and History."""

from __future__ import annotations

import pytest

from kuhn_solver.engine.game_state import (
    ROOT_PLAYER,
    History,
    Move,
    Player,
    moves_to_str,
    other_player,
    player_after,
)


class TestPlayer:
    def test_other_alternates(self):
        assert Player.PLAYER_0.other() is Player.PLAYER_1
        assert Player.PLAYER_1.other() is Player.PLAYER_0

    def test_other_player_helper(self):
        assert other_player(Player.PLAYER_0) is Player.PLAYER_1

    def test_root_player_is_zero(self):
        assert ROOT_PLAYER is Player.PLAYER_0

    @pytest.mark.parametrize("n, expected", [(0, Player.PLAYER_0), (1, Player.PLAYER_1),
                                             (2, Player.PLAYER_0), (3, Player.PLAYER_1)])
    def test_player_after(self, n, expected):
        assert player_after(n) is expected


class TestHistory:
    def test_root_defaults(self):
        root = History()
        assert root.player_to_move is ROOT_PLAYER
        assert root.moves == ()
        assert len(root) == 0
        assert root.last_move is None

    def test_append_alternates_player(self):
        h = History()
        for i, move in enumerate((Move.CHECK, Move.BET, Move.CALL), start=1):
            h = h.append(move)
            assert h.player_to_move is player_after(i)
        assert h.moves == (Move.CHECK, Move.BET, Move.CALL)

    def test_append_is_pure(self):
        root = History()
        root.append(Move.BET)
        assert root.moves == ()

    def test_inconsistent_player_raises(self):
        with pytest.raises(ValueError, match="must have PLAYER_1 to move"):
            History(player_to_move=Player.PLAYER_0, moves=(Move.CHECK,))

    def test_from_moves_derives_player(self):
        h = History.from_moves(Move.CHECK, Move.BET)
        assert h.player_to_move is Player.PLAYER_0

    def test_structural_equality_and_hash(self):
        a = History.from_moves(Move.BET)
        b = History().append(Move.BET)
        assert a == b
        assert hash(a) == hash(b)

    def test_last_move(self):
        assert History.from_moves(Move.CHECK, Move.BET).last_move is Move.BET

    def test_prefix(self):
        h = History.from_moves(Move.CHECK, Move.BET, Move.FOLD)
        assert h.prefix(0) == History()
        assert h.prefix(2) == History.from_moves(Move.CHECK, Move.BET)
        assert h.prefix(3) == h

    def test_prefix_out_of_range(self):
        with pytest.raises(ValueError):
            History.from_moves(Move.BET).prefix(2)


class TestMovesToStr:
    def test_root(self):
        assert moves_to_str(()) == '-'
        assert str(History()) == '-'

    def test_sequence(self):
        assert moves_to_str((Move.CHECK, Move.BET, Move.RAISE, Move.FOLD)) == 'k,b,r,f'
