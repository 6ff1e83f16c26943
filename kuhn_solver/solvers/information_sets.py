"""
Information set type for the Kuhn-variant CFR solver.

An information set (infoset) encodes exactly what the acting player observes
at a decision point: their own private card plus the public move history.
Two histories that differ only in the opponent's hidden card map to the same
infoset, so the learning state never depends on information the acting player
could not see.

InfoSet is a NamedTuple: it subclasses tuple and is therefore hashable and
usable as a key in CFR regret tables. Equality is structural (same card, same
moves, same player to move), never by object identity.

``to_info_set`` is the only place a private card enters the learning state.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from kuhn_solver.engine.cards import Card, card_to_str
from kuhn_solver.engine.deck import player_card
from kuhn_solver.engine.game_state import History, Move, Player
from kuhn_solver.engine.rules import GameDefinition, legal_next_moves

if TYPE_CHECKING:
    from kuhn_solver.solvers.chancy_history import ChancyHistory


# ─── Information set type ─────────────────────────────────────────────────────

class InfoSet(NamedTuple):
    """Acting player's private card plus the public history.

    Attributes:
        card:    The acting player's card.
        history: Public moves and the player to move.

    Example:
        >>> InfoSet(Card.QUEEN, History.from_moves(Move.CHECK))
        InfoSet(card=<Card.QUEEN: 2>, history=History(player_to_move=<Player.PLAYER_1: 1>, moves=(<Move.CHECK: 1>,)))
    """
    card: Card
    history: History

    @property
    def player(self) -> Player:
        return self.history.player_to_move

    def __str__(self) -> str:
        return f"{card_to_str(self.card)}:{self.history}"


# ─── Factory / extractor functions ───────────────────────────────────────────

def to_info_set(chancy_history: ChancyHistory, deck: np.ndarray) -> InfoSet:
    """Resolve a chancy history to the acting player's information set.

    Drops the reach-probability annotations and attaches the card of the
    player to move. The opponent's card is never read.

    Args:
        chancy_history: History annotated with reach probabilities.
        deck:           Dealt deck for the current iteration.

    Returns:
        InfoSet keyed on (acting player's card, public history).
    """
    history = chancy_history.determinize()
    return InfoSet(card=player_card(deck, history.player_to_move), history=history)


def make_info_set(card: Card, *moves: Move) -> InfoSet:
    """Build an InfoSet from a card and the public moves.

    Example:
        >>> str(make_info_set(Card.KING, Move.BET))
        'K:b'
    """
    return InfoSet(card=card, history=History.from_moves(*moves))


# ─── Legal move / enumeration queries ─────────────────────────────────────────

def legal_moves_at(info_set: InfoSet, game: GameDefinition) -> tuple[Move, ...]:
    """Return the legal moves at an information set."""
    return legal_next_moves(info_set.history, game)


def enumerate_decision_histories(game: GameDefinition) -> list[History]:
    """Return every non-terminal public history of *game*, breadth-first.

    The root comes first; children follow in transition-table order.
    """
    result: list[History] = []
    queue: deque[History] = deque([History()])
    while queue:
        history = queue.popleft()
        moves = legal_next_moves(history, game)
        if not moves:
            continue
        result.append(history)
        for move in moves:
            queue.append(history.append(move))
    return result


def enumerate_info_sets(game: GameDefinition) -> list[InfoSet]:
    """Return every decision information set of *game*.

    Ordered by public history (breadth-first), then by card, lowest first.
    """
    return [
        InfoSet(card=card, history=history)
        for history in enumerate_decision_histories(game)
        for card in game.cards
    ]
