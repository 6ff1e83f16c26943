"""
Players, moves, terminal classifications, and the public move history.

A History is the public part of a hand: the ordered moves taken so far and
whose turn it is. Players alternate strictly, so the player to move is fully
determined by the root player and the number of moves:

    player_to_move = ROOT_PLAYER xor (len(moves) % 2)

Histories are immutable. ``append`` returns a new value; the solver never
mutates a history in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Player(Enum):
    PLAYER_0 = 0
    PLAYER_1 = 1

    def other(self) -> Player:
        """Return the opponent of this player."""
        return Player.PLAYER_1 if self is Player.PLAYER_0 else Player.PLAYER_0


class Move(Enum):
    CHECK = auto()
    BET = auto()
    CALL = auto()
    RAISE = auto()
    FOLD = auto()


class TerminalState(Enum):
    IN_PROGRESS = auto()
    DOUBLE_CHECK = auto()  # Check-check: showdown for the antes only
    FOLD = auto()          # Pot goes to the player who did not fold
    SHOWDOWN = auto()      # Call after a bet or raise


MOVE_NAMES: dict[Move, str] = {
    Move.CHECK: 'k',
    Move.BET: 'b',
    Move.CALL: 'c',
    Move.RAISE: 'r',
    Move.FOLD: 'f',
}

ROOT_PLAYER: Player = Player.PLAYER_0


def other_player(player: Player) -> Player:
    """Return the opponent of *player*."""
    return player.other()


def player_after(num_moves: int) -> Player:
    """Return the player to move after *num_moves* moves from the root."""
    return ROOT_PLAYER if num_moves % 2 == 0 else ROOT_PLAYER.other()


def moves_to_str(moves: tuple[Move, ...]) -> str:
    """Render a move sequence compactly, e.g. ``'k,b,c'``. Root is ``'-'``."""
    if not moves:
        return '-'
    return ','.join(MOVE_NAMES[m] for m in moves)


# ─── History ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class History:
    """Immutable public move sequence plus the player to move.

    Frozen (hashable) so it can be part of an information-set key.

    Raises:
        ValueError: If ``player_to_move`` disagrees with the move count.
    """
    player_to_move: Player = ROOT_PLAYER
    moves: tuple[Move, ...] = ()

    def __post_init__(self) -> None:
        expected = player_after(len(self.moves))
        if self.player_to_move is not expected:
            raise ValueError(
                f"History with {len(self.moves)} moves must have {expected.name} "
                f"to move, got {self.player_to_move.name}."
            )

    @classmethod
    def from_moves(cls, *moves: Move) -> History:
        """Build a history from moves, deriving the player to move."""
        return cls(player_to_move=player_after(len(moves)), moves=tuple(moves))

    def __len__(self) -> int:
        return len(self.moves)

    def __str__(self) -> str:
        return moves_to_str(self.moves)

    @property
    def last_move(self) -> Move | None:
        return self.moves[-1] if self.moves else None

    def append(self, move: Move) -> History:
        """Return a new history with *move* taken by the player to move.

        No legality check here: legality depends on the game variant and
        lives in ``rules.legal_next_moves``.
        """
        return History(
            player_to_move=self.player_to_move.other(),
            moves=self.moves + (move,),
        )

    def prefix(self, n: int) -> History:
        """Return the history as it was after its first *n* moves."""
        if not 0 <= n <= len(self.moves):
            raise ValueError(f"Cannot take a {n}-move prefix of a {len(self.moves)}-move history.")
        return History(player_to_move=player_after(n), moves=self.moves[:n])
