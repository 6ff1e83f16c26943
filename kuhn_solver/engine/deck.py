"""
Deck creation, shuffling, and card ownership.

The deck is a numpy int8 array holding a permutation of the game's cards.
Player 0 is dealt ``deck[0]``, player 1 ``deck[1]``; any further cards are
never looked at in a two-player game without community cards.

The solver re-shuffles the same array in place once per iteration and only
reads it for the rest of that iteration.
"""

from __future__ import annotations

import numpy as np

from .cards import Card
from .game_state import Player


def create_deck(cards: tuple[Card, ...]) -> np.ndarray:
    """Create an ordered deck from the given cards.

    Returns:
        np.ndarray: int8 array with one entry per card, in the given order.

    Raises:
        ValueError: If fewer than two cards are given or a card repeats.

    Examples:
        >>> deck = create_deck((Card.QUEEN, Card.KING, Card.ACE))
        >>> deck.tolist()
        [2, 3, 4]
        >>> deck.dtype
        dtype('int8')
    """
    if len(cards) < 2:
        raise ValueError("A deck needs at least one card per player.")
    if len(set(cards)) != len(cards):
        raise ValueError(f"Deck cards must be unique, got {cards}.")
    return np.array([int(c) for c in cards], dtype=np.int8)


def build_deck(*cards: Card) -> np.ndarray:
    """Create a deck in exactly the given order.

    Used for deterministic test setups: the first card goes to player 0,
    the second to player 1.

    Examples:
        >>> build_deck(Card.ACE, Card.QUEEN).tolist()
        [4, 2]
    """
    return create_deck(tuple(cards))


def shuffle_deck(deck: np.ndarray, rng: np.random.Generator) -> None:
    """Permute the deck uniformly at random.

    Args:
        deck: Mutable deck array — modified in place.
        rng:  numpy Generator supplying the randomness.
    """
    rng.shuffle(deck)


def player_card(deck: np.ndarray, player: Player) -> Card:
    """Return the private card dealt to *player*.

    Examples:
        >>> deck = build_deck(Card.KING, Card.ACE, Card.QUEEN)
        >>> player_card(deck, Player.PLAYER_1)
        <Card.ACE: 4>
    """
    return Card(int(deck[player.value]))


def winning_player(deck: np.ndarray) -> Player:
    """Return the player holding the higher card.

    Cards are unique, so there is never a tie.

    Examples:
        >>> winning_player(build_deck(Card.QUEEN, Card.KING))
        <Player.PLAYER_1: 1>
    """
    card_0 = player_card(deck, Player.PLAYER_0)
    card_1 = player_card(deck, Player.PLAYER_1)
    return Player.PLAYER_0 if card_0 > card_1 else Player.PLAYER_1
