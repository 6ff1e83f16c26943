"""
Shared pytest fixtures for Kuhn-variant CFR solver tests.

Provides convenience wrappers around str_to_card for building known deals
and histories.
"""

from __future__ import annotations

import numpy as np
import pytest

from kuhn_solver.engine.cards import str_to_card
from kuhn_solver.engine.deck import build_deck
from kuhn_solver.engine.game_state import History, Move


def deal(*card_strs: str) -> np.ndarray:
    """Build a deck from human-readable card names, player 0's card first.

    Examples:
        >>> deal('K', 'Q').tolist()
        [3, 2]
    """
    return build_deck(*(str_to_card(s) for s in card_strs))


def moves(*names: Move) -> History:
    """Shorthand for History.from_moves."""
    return History.from_moves(*names)


@pytest.fixture
def d():
    """Expose the deal() helper as a fixture for convenience."""
    return deal


@pytest.fixture
def rng() -> np.random.Generator:
    """Deterministic numpy Generator."""
    return np.random.default_rng(1234)
