"""Tests for kuhn_solver/engine/rules.py — legality, terminals and payoffs."""

from __future__ import annotations

import pytest

from kuhn_solver.engine.game_state import History, Move, Player, TerminalState
from kuhn_solver.engine.rules import (
    BETTING_ROUND,
    GAME_VARIANTS,
    KUHN,
    get_game,
    is_terminal,
    legal_next_moves,
    pot_contributions,
    terminal_payoff,
    terminal_state,
)
from tests.conftest import deal, moves

C, B, CA, R, F = Move.CHECK, Move.BET, Move.CALL, Move.RAISE, Move.FOLD


class TestGameDefinitions:
    def test_variants_registered(self):
        assert set(GAME_VARIANTS) == {'kuhn', 'betting_round'}

    def test_get_game(self):
        assert get_game('kuhn') is KUHN
        assert get_game('betting_round') is BETTING_ROUND

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="Unknown game variant"):
            get_game('holdem')

    def test_kuhn_known_value(self):
        assert abs(KUHN.known_value - (-1.0 / 18.0)) < 1e-12

    def test_moves_property(self):
        assert KUHN.moves == (C, B, CA, F)
        assert BETTING_ROUND.moves == (C, B, CA, R, F)


class TestLegalMoves:
    @pytest.mark.parametrize(
        "history, expected",
        [
            ((), (C, B)),
            ((C,), (C, B)),
            ((B,), (CA, F)),
            ((C, B), (CA, F)),
        ],
    )
    def test_kuhn_table(self, history, expected):
        assert legal_next_moves(moves(*history), KUHN) == expected

    @pytest.mark.parametrize(
        "history, expected",
        [
            ((), (C, B)),
            ((C,), (C, B)),
            ((B,), (CA, R, F)),
            ((B, R), (CA, F)),
            ((C, B, R), (CA, F)),
        ],
    )
    def test_betting_round_table(self, history, expected):
        assert legal_next_moves(moves(*history), BETTING_ROUND) == expected

    @pytest.mark.parametrize("history", [(C, C), (B, F), (B, CA), (C, B, CA), (C, B, F)])
    def test_terminal_has_no_moves(self, history):
        assert legal_next_moves(moves(*history), KUHN) == ()

    def test_raise_not_in_kuhn(self):
        with pytest.raises(ValueError, match="cannot continue"):
            legal_next_moves(moves(B, R), KUHN)

    def test_no_duplicates(self):
        for table in (KUHN.transitions, BETTING_ROUND.transitions):
            for legal in table.values():
                assert len(set(legal)) == len(legal)


class TestTerminalState:
    def test_root_in_progress(self):
        assert terminal_state(History()) is TerminalState.IN_PROGRESS

    def test_single_check_not_terminal(self):
        assert terminal_state(moves(C)) is TerminalState.IN_PROGRESS
        assert not is_terminal(moves(C))

    def test_double_check(self):
        assert terminal_state(moves(C, C)) is TerminalState.DOUBLE_CHECK

    def test_fold(self):
        assert terminal_state(moves(C, B, F)) is TerminalState.FOLD

    def test_call_is_showdown(self):
        assert terminal_state(moves(B, CA)) is TerminalState.SHOWDOWN
        assert terminal_state(moves(B, R, CA)) is TerminalState.SHOWDOWN

    def test_bet_in_progress(self):
        assert not is_terminal(moves(C, B))


class TestPotContributions:
    def test_antes_only(self):
        assert pot_contributions(History(), KUHN) == {Player.PLAYER_0: 1.0, Player.PLAYER_1: 1.0}

    def test_bet_call(self):
        assert pot_contributions(moves(B, CA), KUHN) == {Player.PLAYER_0: 2.0, Player.PLAYER_1: 2.0}

    def test_check_bet(self):
        assert pot_contributions(moves(C, B), KUHN) == {Player.PLAYER_0: 1.0, Player.PLAYER_1: 2.0}

    def test_bet_raise(self):
        contrib = pot_contributions(moves(B, R), BETTING_ROUND)
        assert contrib == {Player.PLAYER_0: 2.0, Player.PLAYER_1: 3.0}


class TestTerminalPayoff:
    def test_in_progress_is_none(self):
        assert terminal_payoff(moves(C), deal('K', 'Q'), KUHN) is None

    def test_double_check_winner_to_move(self):
        # P0 to move after check-check and holds the higher card.
        assert terminal_payoff(moves(C, C), deal('A', 'Q'), KUHN) == 1.0

    def test_double_check_loser_to_move(self):
        assert terminal_payoff(moves(C, C), deal('Q', 'A'), KUHN) == -1.0

    def test_bet_fold_pays_one(self):
        # P1 folded; P0 (to move) takes one chip whatever the cards.
        assert terminal_payoff(moves(B, F), deal('Q', 'A'), KUHN) == 1.0
        assert terminal_payoff(moves(C, B, F), deal('A', 'Q'), KUHN) == 1.0

    def test_bet_call_showdown(self):
        # After bet-call P0 is to move.
        assert terminal_payoff(moves(B, CA), deal('K', 'Q'), KUHN) == 2.0
        assert terminal_payoff(moves(B, CA), deal('Q', 'K'), KUHN) == -2.0
        # After check-bet-call P1 is to move.
        assert terminal_payoff(moves(C, B, CA), deal('K', 'Q'), KUHN) == -2.0

    def test_raise_fold_pays_two(self):
        assert terminal_payoff(moves(B, R, F), deal('A', 'T'), BETTING_ROUND) == 2.0

    def test_raise_call_showdown(self):
        # After bet-raise-call P1 is to move.
        assert terminal_payoff(moves(B, R, CA), deal('T', 'J'), BETTING_ROUND) == 3.0
        assert terminal_payoff(moves(B, R, CA), deal('J', 'T'), BETTING_ROUND) == -3.0

    def test_zero_sum_sign_convention(self):
        """Negating the payoff gives the terminating player's result."""
        deck = deal('Q', 'K')
        payoff = terminal_payoff(moves(C, B, F), deck, KUHN)
        # P0 folded to P1's bet: P1 (to move) +1, P0 −1.
        assert payoff == 1.0
        assert -payoff == -1.0
