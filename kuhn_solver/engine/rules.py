"""
Game definitions, move legality, terminal classification, and payoffs.

A GameDefinition is plain data: the cards in the deck, a transition table
from the previous move to the legal next moves, and the chip sizes. The
solver never hard-codes a variant; it only calls the functions below.

Terminal classification (inspects at most the last two moves):
    CHECK, CHECK        → DOUBLE_CHECK  (showdown for the antes)
    ..., FOLD           → FOLD          (non-folder takes the pot)
    ..., CALL           → SHOWDOWN      (after a bet or raise)
    anything else       → IN_PROGRESS

Payoff convention:
    The payoff is always for the player to move at the terminal history,
    i.e. the player who did NOT make the terminating move. Negate it to get
    the payoff of the player who ended the hand.

Pot accounting (ante and bet_size both 1 in the shipped variants):
    each player antes ``ante``; BET adds ``bet_size``; CALL matches the
    opponent; RAISE matches and adds ``bet_size``. The winner gains the
    loser's contribution. Resulting table:

    CHECK, CHECK        ±1  by card
    ..., BET, FOLD      +1
    ..., RAISE, FOLD    +2
    ..., BET, CALL      ±2  by card
    ..., RAISE, CALL    ±3  by card
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from .cards import Card
from .deck import winning_player
from .game_state import ROOT_PLAYER, History, Move, Player, TerminalState


@dataclass(frozen=True, eq=False)
class GameDefinition:
    """A two-player, one-card-each betting game.

    Attributes:
        name:        Short identifier, e.g. ``'kuhn'``.
        cards:       Deck contents, lowest card first.
        transitions: Previous move (``None`` at the root) → legal next moves,
                     in the order the solver expands them.
        ante:        Chips each player puts in before the deal.
        bet_size:    Chips added by a BET or on top of a call by a RAISE.
        known_value: Equilibrium value for player 0, if known analytically.
    """
    name: str
    cards: tuple[Card, ...]
    transitions: Mapping[Move | None, tuple[Move, ...]] = field(repr=False)
    ante: float = 1.0
    bet_size: float = 1.0
    known_value: float | None = None

    @property
    def moves(self) -> tuple[Move, ...]:
        """Every move that can occur in this game, in Move declaration order."""
        used = {m for moves in self.transitions.values() for m in moves}
        return tuple(m for m in Move if m in used)


KUHN = GameDefinition(
    name='kuhn',
    cards=(Card.QUEEN, Card.KING, Card.ACE),
    transitions={
        None: (Move.CHECK, Move.BET),
        Move.CHECK: (Move.CHECK, Move.BET),
        Move.BET: (Move.CALL, Move.FOLD),
    },
    known_value=-1.0 / 18.0,
)

BETTING_ROUND = GameDefinition(
    name='betting_round',
    cards=(Card.TEN, Card.JACK, Card.QUEEN, Card.KING, Card.ACE),
    transitions={
        None: (Move.CHECK, Move.BET),
        Move.CHECK: (Move.CHECK, Move.BET),
        Move.BET: (Move.CALL, Move.RAISE, Move.FOLD),
        Move.RAISE: (Move.CALL, Move.FOLD),
    },
)

GAME_VARIANTS: dict[str, GameDefinition] = {
    KUHN.name: KUHN,
    BETTING_ROUND.name: BETTING_ROUND,
}


def get_game(name: str) -> GameDefinition:
    """Look up a game variant by name.

    Raises:
        ValueError: If the name is unknown.
    """
    if name not in GAME_VARIANTS:
        known = ', '.join(sorted(GAME_VARIANTS))
        raise ValueError(f"Unknown game variant {name!r}; expected one of: {known}.")
    return GAME_VARIANTS[name]


# ─── Classification ───────────────────────────────────────────────────────────

def terminal_state(history: History) -> TerminalState:
    """Classify a history as in progress or as one of the terminal kinds.

    Examples:
        >>> terminal_state(History.from_moves(Move.CHECK))
        <TerminalState.IN_PROGRESS: 1>
        >>> terminal_state(History.from_moves(Move.CHECK, Move.CHECK))
        <TerminalState.DOUBLE_CHECK: 2>
    """
    last = history.last_move
    if last is Move.FOLD:
        return TerminalState.FOLD
    if last is Move.CALL:
        return TerminalState.SHOWDOWN
    if last is Move.CHECK and len(history) >= 2 and history.moves[-2] is Move.CHECK:
        return TerminalState.DOUBLE_CHECK
    return TerminalState.IN_PROGRESS


def is_terminal(history: History) -> bool:
    return terminal_state(history) is not TerminalState.IN_PROGRESS


def legal_next_moves(history: History, game: GameDefinition) -> tuple[Move, ...]:
    """Return the legal moves after *history*, or ``()`` if the hand is over.

    Legality is a pure function of the last move (or the root).

    Raises:
        ValueError: If the history contains a move sequence the game cannot
                    produce.
    """
    if is_terminal(history):
        return ()
    last = history.last_move
    if last not in game.transitions:
        raise ValueError(
            f"Move {last.name if last else None} cannot continue a {game.name} hand."
        )
    return game.transitions[last]


# ─── Payoffs ──────────────────────────────────────────────────────────────────

def pot_contributions(history: History, game: GameDefinition) -> dict[Player, float]:
    """Return each player's total chips in the pot after *history*."""
    contrib = {Player.PLAYER_0: game.ante, Player.PLAYER_1: game.ante}
    player = ROOT_PLAYER
    for move in history.moves:
        opponent = player.other()
        if move is Move.BET:
            contrib[player] += game.bet_size
        elif move is Move.CALL:
            contrib[player] = contrib[opponent]
        elif move is Move.RAISE:
            contrib[player] = contrib[opponent] + game.bet_size
        player = opponent
    return contrib


def terminal_payoff(
    history: History,
    deck: np.ndarray,
    game: GameDefinition,
) -> float | None:
    """Return the payoff for the player to move at a terminal history.

    Args:
        history: Public move sequence.
        deck:    Dealt deck; only ``deck[0]`` and ``deck[1]`` matter.
        game:    Game variant supplying ante and bet sizes.

    Returns:
        Signed chips won by the player to move, or None if the hand is
        still in progress.
    """
    state = terminal_state(history)
    if state is TerminalState.IN_PROGRESS:
        return None

    me = history.player_to_move
    contrib = pot_contributions(history, game)

    if state is TerminalState.FOLD:
        # The last mover folded; the player to move takes the folder's chips.
        return contrib[me.other()]

    if winning_player(deck) is me:
        return contrib[me.other()]
    return -contrib[me]
