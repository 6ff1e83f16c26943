"""
Card constants, ordering, and human-readable I/O helpers.

Cards are a small totally ordered rank set:
    TEN < JACK < QUEEN < KING < ACE

Suits are irrelevant in every supported variant, so a card is just its rank.
IntEnum keeps comparisons and numpy storage trivial; string forms are used
exclusively at I/O boundaries.
"""

from __future__ import annotations

from enum import IntEnum


class Card(IntEnum):
    TEN = 0
    JACK = 1
    QUEEN = 2
    KING = 3
    ACE = 4


CARD_NAMES: dict[Card, str] = {
    Card.TEN: 'T',
    Card.JACK: 'J',
    Card.QUEEN: 'Q',
    Card.KING: 'K',
    Card.ACE: 'A',
}

_NAME_TO_CARD: dict[str, Card] = {name: card for card, name in CARD_NAMES.items()}

# Full five-card rank set, lowest first.
ALL_CARDS: tuple[Card, ...] = tuple(Card)


def card_to_str(card: Card | int) -> str:
    """Convert a card to its one-letter name.

    Examples:
        >>> card_to_str(Card.ACE)
        'A'
        >>> card_to_str(2)
        'Q'
    """
    return CARD_NAMES[Card(card)]


def str_to_card(s: str) -> Card:
    """Parse a one-letter card name (case-insensitive).

    '10' is accepted as an alias for 'T'.

    Raises:
        ValueError: If the name is not a known rank.

    Examples:
        >>> str_to_card('K')
        <Card.KING: 3>
        >>> str_to_card('10')
        <Card.TEN: 0>
    """
    key = s.strip().upper()
    if key == '10':
        key = 'T'
    if key not in _NAME_TO_CARD:
        raise ValueError(f"Unknown card name: {s!r}")
    return _NAME_TO_CARD[key]


def hand_to_str(cards: tuple[Card | int, ...]) -> str:
    """Convert a sequence of cards to a space-separated string.

    Examples:
        >>> hand_to_str((Card.QUEEN, Card.ACE))
        'Q A'
    """
    return ' '.join(card_to_str(c) for c in cards)
