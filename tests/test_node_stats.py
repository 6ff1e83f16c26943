"""Tests for kuhn_solver/solvers/node_stats.py — regret matching and tables."""

from __future__ import annotations

import pytest

from kuhn_solver.engine.cards import Card
from kuhn_solver.engine.game_state import Move
from kuhn_solver.solvers.information_sets import make_info_set
from kuhn_solver.solvers.node_stats import CfrTables, NodeStats, NodeUtils, TraversalError

CHECK_BET = (Move.CHECK, Move.BET)
ROOT_Q = make_info_set(Card.QUEEN)


class TestNodeStats:
    def test_uniform_creation(self):
        stats = NodeStats.uniform(CHECK_BET)
        assert stats.strategy == {Move.CHECK: 0.5, Move.BET: 0.5}
        assert stats.regret_sum == {Move.CHECK: 0.0, Move.BET: 0.0}
        assert stats.strategy_sum == {Move.CHECK: 0.0, Move.BET: 0.0}

    def test_empty_moves_raise(self):
        with pytest.raises(ValueError, match="no legal moves"):
            NodeStats.uniform(())

    def test_positive_regret_matching(self):
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_regret(Move.CHECK, 3.0)
        stats.update_regret(Move.BET, -1.0)
        assert stats.update_strategy(1.0) == {Move.CHECK: 1.0, Move.BET: 0.0}

    def test_zero_regrets_give_uniform(self):
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_strategy(1.0)
        assert stats.strategy == {Move.CHECK: 0.5, Move.BET: 0.5}

    def test_all_negative_regrets_give_uniform(self):
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_regret(Move.CHECK, -2.0)
        stats.update_regret(Move.BET, -0.5)
        assert stats.update_strategy(1.0) == {Move.CHECK: 0.5, Move.BET: 0.5}

    def test_proportional(self):
        stats = NodeStats.uniform((Move.CALL, Move.RAISE, Move.FOLD))
        stats.update_regret(Move.CALL, 1.0)
        stats.update_regret(Move.RAISE, 3.0)
        strategy = stats.update_strategy(0.0)
        assert abs(strategy[Move.CALL] - 0.25) < 1e-12
        assert abs(strategy[Move.RAISE] - 0.75) < 1e-12
        assert strategy[Move.FOLD] == 0.0

    def test_single_update_average(self):
        """One update with weight 1 makes the average equal the new strategy."""
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_regret(Move.CHECK, 3.0)
        stats.update_regret(Move.BET, 2.0)
        stats.update_strategy(1.0)
        avg = stats.average_strategy()
        assert abs(avg[Move.CHECK] - 0.6) < 1e-12
        assert abs(avg[Move.BET] - 0.4) < 1e-12

    def test_average_weighted_by_reach(self):
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_regret(Move.CHECK, 1.0)
        stats.update_strategy(3.0)               # {1, 0} with weight 3
        stats.update_regret(Move.BET, 5.0)
        stats.update_regret(Move.CHECK, -1.0)
        stats.update_strategy(1.0)               # {0, 1} with weight 1
        avg = stats.average_strategy()
        assert abs(avg[Move.CHECK] - 0.75) < 1e-12

    def test_average_uniform_without_weight(self):
        stats = NodeStats.uniform(CHECK_BET)
        stats.update_strategy(0.0)
        assert stats.average_strategy() == {Move.CHECK: 0.5, Move.BET: 0.5}

    def test_illegal_move_lookup(self):
        stats = NodeStats.uniform(CHECK_BET)
        with pytest.raises(ValueError, match="not legal"):
            stats.strategy_for(Move.FOLD)
        with pytest.raises(ValueError, match="not legal"):
            stats.update_regret(Move.CALL, 1.0)


class TestNodeUtils:
    def test_for_moves(self):
        utils = NodeUtils.for_moves(CHECK_BET)
        assert utils.move_utils == {Move.CHECK: 0.0, Move.BET: 0.0}
        assert utils.value == 0.0
        assert utils.reach_weight == 0.0


class TestCfrTables:
    def test_ensure_creates_once(self):
        tables = CfrTables()
        first = tables.ensure(ROOT_Q, CHECK_BET)
        first.update_regret(Move.BET, 1.0)
        assert tables.ensure(ROOT_Q, CHECK_BET) is first
        assert len(tables) == 1
        assert ROOT_Q in tables

    def test_missing_info_set_raises(self):
        tables = CfrTables()
        with pytest.raises(TraversalError):
            tables.strategy_for(ROOT_Q, Move.BET)
        with pytest.raises(TraversalError):
            tables.update_regret(ROOT_Q, Move.BET, 1.0)

    def test_strategy_for_illegal_move(self):
        tables = CfrTables()
        tables.ensure(ROOT_Q, CHECK_BET)
        with pytest.raises(ValueError):
            tables.strategy_for(ROOT_Q, Move.CALL)

    def test_update_strategy_checks_moves(self):
        tables = CfrTables()
        tables.ensure(ROOT_Q, CHECK_BET)
        with pytest.raises(ValueError, match="do not match"):
            tables.update_strategy(ROOT_Q, (Move.CALL, Move.FOLD), 1.0)

    def test_update_strategy_regret_matches(self):
        tables = CfrTables()
        tables.ensure(ROOT_Q, CHECK_BET)
        tables.update_regret(ROOT_Q, Move.BET, 2.0)
        tables.update_strategy(ROOT_Q, CHECK_BET, 1.0)
        assert tables.strategy_for(ROOT_Q, Move.BET) == 1.0

    def test_average_strategy_unvisited_uniform(self):
        tables = CfrTables()
        avg = tables.average_strategy(ROOT_Q, CHECK_BET)
        assert avg == {Move.CHECK: 0.5, Move.BET: 0.5}

    def test_average_strategies(self):
        tables = CfrTables()
        tables.ensure(ROOT_Q, CHECK_BET)
        tables.ensure(make_info_set(Card.KING, Move.BET), (Move.CALL, Move.FOLD))
        profile = tables.average_strategies()
        assert set(profile) == {ROOT_Q, make_info_set(Card.KING, Move.BET)}
