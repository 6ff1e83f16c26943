"""ChancyHistory: a public history annotated with reach probabilities.

For every move taken, a ChancyHistory records the running pair ``(p0, p1)``:
the product of each player's OWN action-selection probabilities along the
path up to and including that move. Only the acting player's coordinate
changes when a move is appended; the other is carried over.

These probabilities come from the players' strategies, never from the deal,
so a ChancyHistory can be built without knowing the private cards. Cards
only enter when it is resolved to an InfoSet via a deck.

Derived quantities
~~~~~~~~~~~~~~~~~~
  reach_probability()                 p0 * p1
  counterfactual_reach_probability()  opponent's coordinate only
  own_reach_probability()             acting player's coordinate only

All three are exactly 1.0 at the root.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from kuhn_solver.engine.game_state import History, Move, Player
from kuhn_solver.engine.rules import (
    GameDefinition,
    is_terminal,
    legal_next_moves,
    terminal_payoff,
)
from kuhn_solver.solvers.information_sets import InfoSet, to_info_set

ReachPair = tuple[float, float]

_ROOT_REACH: ReachPair = (1.0, 1.0)


@dataclass(frozen=True)
class ChancyHistory:
    """Immutable history plus per-move running reach products.

    Attributes:
        game:        Game variant deciding which extensions are legal.
        history:     Public moves and the player to move.
        reach_pairs: ``reach_pairs[i]`` is ``(p0, p1)`` after move ``i``.
                     Always the same length as ``history.moves``.
    """
    game: GameDefinition = field(repr=False, compare=False)
    history: History = field(default_factory=History)
    reach_pairs: tuple[ReachPair, ...] = ()

    @classmethod
    def root(cls, game: GameDefinition) -> ChancyHistory:
        """Return the empty history for *game*."""
        return cls(game=game)

    def __len__(self) -> int:
        return len(self.history)

    @property
    def player_to_move(self) -> Player:
        return self.history.player_to_move

    @property
    def moves(self) -> tuple[Move, ...]:
        return self.history.moves

    @property
    def contributions(self) -> ReachPair:
        """Latest ``(p0, p1)``; ``(1.0, 1.0)`` at the root."""
        return self.reach_pairs[-1] if self.reach_pairs else _ROOT_REACH

    # ── Construction ──────────────────────────────────────────────────────────

    def extend(self, move: Move, probability: float) -> ChancyHistory | None:
        """Append *move*, chosen by the player to move with *probability*.

        Returns:
            The extended history, or None if *move* is not legal here.

        Raises:
            ValueError: If *probability* is outside [0, 1].
        """
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Move probability must be in [0, 1], got {probability}.")
        if move not in legal_next_moves(self.history, self.game):
            return None

        p0, p1 = self.contributions
        if self.player_to_move is Player.PLAYER_0:
            pair = (p0 * probability, p1)
        else:
            pair = (p0, p1 * probability)

        return ChancyHistory(
            game=self.game,
            history=self.history.append(move),
            reach_pairs=self.reach_pairs + (pair,),
        )

    def prefix(self, n: int) -> ChancyHistory:
        """Return this history as it was after its first *n* moves.

        Raises:
            ValueError: If *n* exceeds the length.
        """
        return ChancyHistory(
            game=self.game,
            history=self.history.prefix(n),
            reach_pairs=self.reach_pairs[:n],
        )

    def truncate(self, n: int, deck: np.ndarray) -> tuple[InfoSet, Move]:
        """Return the InfoSet at prefix length *n* and the move taken next.

        Used to walk a terminal path back toward the root one information
        set at a time.

        Raises:
            ValueError: If *n* is not shorter than the history.
        """
        if not 0 <= n < len(self):
            raise ValueError(
                f"Cannot truncate a {len(self)}-move history to length {n}; "
                "the prefix must be strictly shorter."
            )
        return to_info_set(self.prefix(n), deck), self.moves[n]

    def determinize(self) -> History:
        """Strip the probabilities, keeping moves and player to move."""
        return self.history

    # ── Probabilities ─────────────────────────────────────────────────────────

    def reach_probability(self) -> float:
        p0, p1 = self.contributions
        return p0 * p1

    def counterfactual_reach_probability(self) -> float:
        """Opponent's contribution only, as if the acting player played to get here."""
        p0, p1 = self.contributions
        return p1 if self.player_to_move is Player.PLAYER_0 else p0

    def own_reach_probability(self) -> float:
        p0, p1 = self.contributions
        return p0 if self.player_to_move is Player.PLAYER_0 else p1

    # ── Terminal queries ──────────────────────────────────────────────────────

    def is_terminal(self) -> bool:
        return is_terminal(self.history)

    def legal_moves(self) -> tuple[Move, ...]:
        return legal_next_moves(self.history, self.game)

    def terminal_payoff(self, deck: np.ndarray) -> float | None:
        """Payoff for the player to move, or None if not terminal."""
        return terminal_payoff(self.history, deck, self.game)
