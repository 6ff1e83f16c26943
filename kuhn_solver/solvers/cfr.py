"""CFR solver for Kuhn poker and its single-raise betting-round variant.

Finds an approximate Nash equilibrium with chance-sampled Counterfactual
Regret Minimization: every iteration shuffles the deck once and then
traverses the complete betting tree for that deal.

Game-theory summary
-------------------
Two players each hold one private card and alternate public moves. The
acting player observes their own card and the move history, never the
opponent's card, so all learning state is keyed by InfoSet(card, history).

Iteration
~~~~~~~~~
  1. Forward pass: explicit stack from the root ChancyHistory. Every
     non-terminal history gets its NodeStats ensured (uniform on first
     visit) before its children are pushed, each child carrying the current
     strategy probability of the move that produced it.
  2. Backward pass: node values and counterfactual move utilities are
     accumulated per InfoSet. Two interchangeable traversals:
       "tabular": reverse forward order over a flat node list; a node's
                   value is Σ σ(m) × (−child value).
       "paths":   every terminal path is walked back with truncate(),
                   flipping the sign at each step.
  3. Batch update: for each InfoSet, regret(m) = Σ cf_reach × (u(m) − v)
     over all its histories, then one regret-matching step weighted by the
     summed realization weight. Strategies stay fixed for the whole pass.

Realization weight
~~~~~~~~~~~~~~~~~~
  "joint": reach_probability() (both players' contributions), the default.
  "own":   own_reach_probability() (acting player only).
At the root both weights are 1, so root average strategies agree.

Convergence
~~~~~~~~~~~
The mean of the per-iteration root values converges to the game value
(−1/18 for Kuhn poker). The final output is the time-averaged strategy of
every visited InfoSet; the last-iteration strategy does not converge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import permutations
from typing import TYPE_CHECKING, Literal

import numpy as np

from kuhn_solver.engine.deck import build_deck, create_deck, player_card, shuffle_deck
from kuhn_solver.engine.game_state import History, Move, Player
from kuhn_solver.engine.rules import (
    KUHN,
    GameDefinition,
    legal_next_moves,
    terminal_payoff,
)
from kuhn_solver.solvers.chancy_history import ChancyHistory
from kuhn_solver.solvers.information_sets import InfoSet, legal_moves_at, to_info_set
from kuhn_solver.solvers.node_stats import CfrTables, NodeUtils, TraversalError

if TYPE_CHECKING:
    from kuhn_solver.config import SolverConfig

logger = logging.getLogger(__name__)

# ─── Type aliases ──────────────────────────────────────────────────────────────

Traversal = Literal["tabular", "paths"]
Weighting = Literal["joint", "own"]

TRAVERSALS: tuple[str, ...] = ("tabular", "paths")
WEIGHTINGS: tuple[str, ...] = ("joint", "own")

StrategyProfile = dict[InfoSet, dict[Move, float]]


# ─── Result type ───────────────────────────────────────────────────────────────


@dataclass
class CfrResult:
    """Output of the CFR solver.

    Attributes:
        game:             Game variant that was solved.
        average_strategy: Time-averaged strategy of every visited InfoSet.
        n_iterations:     Number of iterations run.
        game_values:      Root value for player 0 at each iteration (sampled
                          deal, current strategies).
        mean_game_value:  Mean of ``game_values``; converges to the game value.
        profile_value:    Exact value for player 0 of the average profile,
                          averaged over every deal.
        exploitability:   Sum of both players' best-response gains against the
                          average profile (0 at equilibrium).
        traversal:        Backward-pass traversal used.
        weighting:        Realization weight used for the strategy sums.
    """

    game: GameDefinition
    average_strategy: StrategyProfile
    n_iterations: int
    game_values: np.ndarray
    mean_game_value: float
    profile_value: float
    exploitability: float
    traversal: str = "tabular"
    weighting: str = "joint"

    def running_mean(self) -> np.ndarray:
        """Mean game value after each iteration."""
        counts = np.arange(1, len(self.game_values) + 1)
        return np.cumsum(self.game_values) / counts


# ─── Forward pass ──────────────────────────────────────────────────────────────


@dataclass
class _TreeNode:
    """A history reached in the current iteration.

    Attributes:
        idx:      Index in the flat node list (parents before children).
        chancy:   The history with its reach probabilities.
        info_set: Acting player's InfoSet; None for terminals.
        children: Move → index of the child node.
        payoff:   Terminal payoff for the player to move; None otherwise.
    """

    idx: int
    chancy: ChancyHistory
    info_set: InfoSet | None
    children: dict[Move, int]
    payoff: float | None


def _children(
    chancy: ChancyHistory,
    info_set: InfoSet,
    tables: CfrTables,
) -> list[tuple[Move, ChancyHistory]]:
    """One child per legal move, weighted by the current strategy.

    Ensures the NodeStats of *info_set* exist (uniform on first visit).
    Returned in reverse legal order so a stack pops them in legal order.
    """
    stats = tables.ensure(info_set, chancy.legal_moves())
    children = []
    for move in reversed(stats.legal_moves):
        child = chancy.extend(move, stats.strategy_for(move))
        if child is None:
            raise TraversalError(f"Forward pass generated illegal move {move.name} at {info_set}.")
        children.append((move, child))
    return children


def expand_tree(
    deck: np.ndarray,
    tables: CfrTables,
    game: GameDefinition,
) -> list[_TreeNode]:
    """Expand every history reachable for this deal.

    Returns:
        Flat node list in depth-first pre-order: every parent precedes its
        children, so the reversed list is a valid bottom-up order.
    """
    nodes: list[_TreeNode] = []
    stack: list[tuple[ChancyHistory, int | None, Move | None]] = [
        (ChancyHistory.root(game), None, None)
    ]

    while stack:
        chancy, parent_idx, move = stack.pop()
        idx = len(nodes)
        if parent_idx is not None:
            nodes[parent_idx].children[move] = idx

        payoff = chancy.terminal_payoff(deck)
        if payoff is not None:
            nodes.append(_TreeNode(idx, chancy, None, {}, payoff))
            continue

        info_set = to_info_set(chancy, deck)
        nodes.append(_TreeNode(idx, chancy, info_set, {}, None))
        for child_move, child in _children(chancy, info_set, tables):
            stack.append((child, idx, child_move))

    return nodes


def _realization_weight(chancy: ChancyHistory, weighting: str) -> float:
    if weighting == "own":
        return chancy.own_reach_probability()
    return chancy.reach_probability()


# ─── Backward pass: tabular ────────────────────────────────────────────────────


def _backward_tabular(
    nodes: list[_TreeNode],
    tables: CfrTables,
    weighting: str,
) -> tuple[dict[InfoSet, NodeUtils], float]:
    """Propagate values bottom-up over the flat node list.

    Returns:
        (utils, root_value): per-InfoSet counterfactual sums and the root
        value for the player to move at the root.
    """
    values = [0.0] * len(nodes)
    utils: dict[InfoSet, NodeUtils] = {}

    for node in reversed(nodes):
        if node.info_set is None:
            values[node.idx] = node.payoff
            continue

        stats = tables.get(node.info_set)
        node_utils = utils.get(node.info_set)
        if node_utils is None:
            node_utils = NodeUtils.for_moves(stats.legal_moves)
            utils[node.info_set] = node_utils

        cf_reach = node.chancy.counterfactual_reach_probability()
        value = 0.0
        for move in stats.legal_moves:
            if move not in node.children:
                raise TraversalError(f"Child for {move.name} missing at {node.info_set}.")
            # Child values are from the opponent's perspective.
            move_value = -values[node.children[move]]
            node_utils.move_utils[move] += cf_reach * move_value
            value += stats.strategy_for(move) * move_value

        values[node.idx] = value
        node_utils.value += cf_reach * value
        node_utils.reach_weight += _realization_weight(node.chancy, weighting)

    return utils, values[0]


# ─── Backward pass: terminal paths ─────────────────────────────────────────────


def _propagate_path(
    chancy: ChancyHistory,
    payoff: float,
    deck: np.ndarray,
    tables: CfrTables,
    utils: dict[InfoSet, NodeUtils],
) -> None:
    """Walk one terminal history back to the root via truncate().

    ``reach_below`` is the probability of playing from the current prefix
    down to the terminal under the current strategies.
    """
    player_utility = payoff
    reach_below = 1.0
    for n in range(len(chancy) - 1, -1, -1):
        info_set, move = chancy.truncate(n, deck)
        player_utility = -player_utility
        node_utils = utils.get(info_set)
        if node_utils is None:
            raise TraversalError(f"No NodeUtils for {info_set}; prefix was never expanded.")

        cf_reach = chancy.prefix(n).counterfactual_reach_probability()
        node_utils.move_utils[move] += cf_reach * reach_below * player_utility
        reach_below *= tables.strategy_for(info_set, move)
        node_utils.value += cf_reach * reach_below * player_utility


def _cfr_pass_paths(
    deck: np.ndarray,
    tables: CfrTables,
    game: GameDefinition,
    weighting: str,
) -> tuple[dict[InfoSet, NodeUtils], float]:
    """Depth-first expansion that settles each terminal as soon as it is popped."""
    utils: dict[InfoSet, NodeUtils] = {}
    root = ChancyHistory.root(game)
    stack: list[ChancyHistory] = [root]

    while stack:
        chancy = stack.pop()
        payoff = chancy.terminal_payoff(deck)
        if payoff is not None:
            _propagate_path(chancy, payoff, deck, tables, utils)
            continue

        info_set = to_info_set(chancy, deck)
        legal = chancy.legal_moves()
        node_utils = utils.get(info_set)
        if node_utils is None:
            node_utils = NodeUtils.for_moves(legal)
            utils[info_set] = node_utils
        node_utils.reach_weight += _realization_weight(chancy, weighting)
        stack.extend(child for _, child in _children(chancy, info_set, tables))

    # Counterfactual reach at the root is 1, so the sum is the root value.
    return utils, utils[to_info_set(root, deck)].value


# ─── Batch update ──────────────────────────────────────────────────────────────


def _apply_updates(utils: dict[InfoSet, NodeUtils], tables: CfrTables) -> None:
    """Record regrets for every InfoSet, then regret-match its strategy."""
    for info_set, node_utils in utils.items():
        stats = tables.get(info_set)
        for move in stats.legal_moves:
            tables.update_regret(info_set, move, node_utils.move_utils[move] - node_utils.value)
        tables.update_strategy(info_set, stats.legal_moves, node_utils.reach_weight)


def _check_options(traversal: str, weighting: str) -> None:
    if traversal not in TRAVERSALS:
        raise ValueError(f"Unknown traversal {traversal!r}; expected one of {TRAVERSALS}.")
    if weighting not in WEIGHTINGS:
        raise ValueError(f"Unknown weighting {weighting!r}; expected one of {WEIGHTINGS}.")


def cfr_iteration(
    deck: np.ndarray,
    tables: CfrTables,
    game: GameDefinition = KUHN,
    traversal: Traversal = "tabular",
    weighting: Weighting = "joint",
) -> float:
    """Run one CFR iteration for a fixed deal.

    Args:
        deck:      Dealt deck (read only).
        tables:    Learning state, updated in place.
        game:      Game variant.
        traversal: ``"tabular"`` or ``"paths"``.
        weighting: ``"joint"`` or ``"own"`` realization weight.

    Returns:
        Root value for player 0 under the strategies in force at the start
        of the iteration.
    """
    _check_options(traversal, weighting)
    if traversal == "tabular":
        nodes = expand_tree(deck, tables, game)
        utils, root_value = _backward_tabular(nodes, tables, weighting)
    else:
        utils, root_value = _cfr_pass_paths(deck, tables, game, weighting)
    _apply_updates(utils, tables)
    return root_value


# ─── Exact evaluation ──────────────────────────────────────────────────────────


def _all_deals(game: GameDefinition) -> list[tuple[np.ndarray, float]]:
    """Every ordered (player 0 card, player 1 card) deal with its probability."""
    pairs = list(permutations(game.cards, 2))
    prob = 1.0 / len(pairs)
    return [(build_deck(c0, c1), prob) for c0, c1 in pairs]


def _lookup(strategy: StrategyProfile, info_set: InfoSet, game: GameDefinition) -> dict[Move, float]:
    """Strategy at *info_set*, uniform over its legal moves if absent."""
    probs = strategy.get(info_set)
    if probs is not None:
        return probs
    legal = legal_moves_at(info_set, game)
    return dict.fromkeys(legal, 1.0 / len(legal))


def _history_value(
    history: History,
    deck: np.ndarray,
    strategy: StrategyProfile,
    game: GameDefinition,
) -> float:
    """Expected value of *history* for its player to move when both follow *strategy*."""
    payoff = terminal_payoff(history, deck, game)
    if payoff is not None:
        return payoff
    info_set = InfoSet(player_card(deck, history.player_to_move), history)
    return sum(
        prob * -_history_value(history.append(move), deck, strategy, game)
        for move, prob in _lookup(strategy, info_set, game).items()
    )


def expected_value(strategy: StrategyProfile, game: GameDefinition = KUHN) -> float:
    """Exact value for player 0 of a strategy profile, averaged over all deals."""
    return sum(prob * _history_value(History(), deck, strategy, game) for deck, prob in _all_deals(game))


def _br_values(
    history: History,
    decks: list[np.ndarray],
    weights: list[float],
    strategy: StrategyProfile,
    game: GameDefinition,
    responder: Player,
) -> list[float]:
    """Per-deal values for *responder* playing a best response below *history*.

    Args:
        weights: Chance probability × opponent reach for each deal; only the
                 responder's decisions use them, to pick the move with the
                 highest counterfactual value per private card.
    """
    legal = legal_next_moves(history, game)
    if not legal:
        sign = 1.0 if history.player_to_move is responder else -1.0
        return [sign * terminal_payoff(history, deck, game) for deck in decks]

    mover = history.player_to_move
    if mover is not responder:
        probs = [
            _lookup(strategy, InfoSet(player_card(deck, mover), history), game) for deck in decks
        ]
        values = [0.0] * len(decks)
        for move in legal:
            child_weights = [w * p[move] for w, p in zip(weights, probs)]
            child = _br_values(history.append(move), decks, child_weights, strategy, game, responder)
            for i, v in enumerate(child):
                values[i] += probs[i][move] * v
        return values

    child_values = {
        move: _br_values(history.append(move), decks, weights, strategy, game, responder)
        for move in legal
    }
    values = [0.0] * len(decks)
    cards = [player_card(deck, responder) for deck in decks]
    for card in set(cards):
        idxs = [i for i, c in enumerate(cards) if c == card]
        best = max(legal, key=lambda m: sum(weights[i] * child_values[m][i] for i in idxs))
        for i in idxs:
            values[i] = child_values[best][i]
    return values


def best_response_value(
    strategy: StrategyProfile,
    game: GameDefinition,
    player: Player,
) -> float:
    """Exact value for *player* of a best response to the opponent's part of *strategy*."""
    deals = _all_deals(game)
    decks = [deck for deck, _ in deals]
    weights = [prob for _, prob in deals]
    values = _br_values(History(), decks, weights, strategy, game, player)
    return sum(w * v for w, v in zip(weights, values))


def compute_exploitability(strategy: StrategyProfile, game: GameDefinition = KUHN) -> float:
    """Total exploitability of a profile: Σ over players of best-response value.

    The game value cancels between the two terms, so the result is 0 at a
    Nash equilibrium and positive otherwise.

    Examples:
        >>> result = solve(n_iterations=2000, seed=0)
        >>> compute_exploitability(result.average_strategy) >= 0
        True
    """
    br_0 = best_response_value(strategy, game, Player.PLAYER_0)
    br_1 = best_response_value(strategy, game, Player.PLAYER_1)
    return br_0 + br_1


# ─── CFR main loop ─────────────────────────────────────────────────────────────


def solve(
    n_iterations: int = 1000,
    game: GameDefinition = KUHN,
    seed: int | None = None,
    traversal: Traversal = "tabular",
    weighting: Weighting = "joint",
    log_every: int = 0,
) -> CfrResult:
    """Run chance-sampled CFR and return the average strategy profile.

    Args:
        n_iterations: Number of iterations (one shuffled deal each).
        game:         Game variant to solve.
        seed:         Seed for the deck shuffler; None for fresh entropy.
        traversal:    Backward-pass traversal, ``"tabular"`` or ``"paths"``.
        weighting:    Strategy-sum realization weight, ``"joint"`` or ``"own"``.
        log_every:    Log progress every N iterations (0 disables).

    Returns:
        CfrResult with the average strategies, game values and exploitability.

    Raises:
        ValueError: If ``n_iterations`` < 1 or an option is unknown.

    Examples:
        >>> result = solve(n_iterations=500, seed=1)
        >>> result.n_iterations
        500
        >>> abs(result.mean_game_value) < 1.0
        True
    """
    if n_iterations < 1:
        raise ValueError(f"n_iterations must be >= 1, got {n_iterations}.")
    _check_options(traversal, weighting)

    logger.info(
        "Solving %s for %d iterations (traversal=%s, weighting=%s, seed=%s)",
        game.name, n_iterations, traversal, weighting, seed,
    )

    rng = np.random.default_rng(seed)
    deck = create_deck(game.cards)
    tables = CfrTables()
    game_values = np.zeros(n_iterations, dtype=np.float64)

    for iteration in range(n_iterations):
        shuffle_deck(deck, rng)
        game_values[iteration] = cfr_iteration(deck, tables, game, traversal, weighting)

        if log_every and (iteration + 1) % log_every == 0:
            logger.info(
                "Iteration %d/%d: mean game value %+.5f over %d info sets",
                iteration + 1, n_iterations, game_values[: iteration + 1].mean(), len(tables),
            )

    average_strategy = tables.average_strategies()
    mean_game_value = float(game_values.mean())
    profile_value = expected_value(average_strategy, game)
    exploitability = compute_exploitability(average_strategy, game)

    logger.info(
        "Finished %s: mean game value %+.5f, profile value %+.5f, exploitability %.5f",
        game.name, mean_game_value, profile_value, exploitability,
    )

    return CfrResult(
        game=game,
        average_strategy=average_strategy,
        n_iterations=n_iterations,
        game_values=game_values,
        mean_game_value=mean_game_value,
        profile_value=profile_value,
        exploitability=exploitability,
        traversal=traversal,
        weighting=weighting,
    )


def solve_with_config(config: SolverConfig) -> CfrResult:
    """Run :func:`solve` with the settings of a ``SolverConfig``."""
    return solve(
        n_iterations=config.n_iterations,
        game=config.game,
        seed=config.seed,
        traversal=config.traversal,
        weighting=config.weighting,
        log_every=config.log_every,
    )


# ─── Public strategy helpers ───────────────────────────────────────────────────


def get_strategy(result: CfrResult, info_set: InfoSet) -> dict[Move, float]:
    """Look up the average strategy at an information set.

    Returns a uniform distribution over the legal moves if the info set was
    never visited.
    """
    return _lookup(result.average_strategy, info_set, result.game)
