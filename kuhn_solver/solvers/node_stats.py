"""Regret and strategy accumulators for the CFR solver.

Per-infoset persistent state (NodeStats) and per-iteration scratch state
(NodeUtils), plus the CfrTables container the driver owns and passes
explicitly into every traversal step.

Regret matching
~~~~~~~~~~~~~~~
  1. Take the positive part of each legal move's cumulative regret.
  2. If their sum is > 0, the new strategy is each positive part divided by
     the sum; otherwise it is uniform over the legal moves.
  3. Accumulate ``reach_weight × new_strategy`` into the strategy sum.

The normalised strategy sum (the average strategy) is what converges to a
Nash equilibrium; the current strategy itself keeps oscillating.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from kuhn_solver.engine.game_state import Move
from kuhn_solver.solvers.information_sets import InfoSet


class TraversalError(RuntimeError):
    """A backward pass needed state that the forward pass never created."""


def _uniform(legal_moves: tuple[Move, ...]) -> dict[Move, float]:
    p = 1.0 / len(legal_moves)
    return dict.fromkeys(legal_moves, p)


def _zeros(legal_moves: tuple[Move, ...]) -> dict[Move, float]:
    return dict.fromkeys(legal_moves, 0.0)


# ─── Per-infoset persistent state ─────────────────────────────────────────────


@dataclass
class NodeStats:
    """Cumulative regret, current strategy and cumulative strategy of one infoset.

    Every table is keyed by exactly the infoset's legal moves. The current
    strategy is always a probability distribution over them.
    """

    legal_moves: tuple[Move, ...]
    regret_sum: dict[Move, float]
    strategy: dict[Move, float]
    strategy_sum: dict[Move, float]

    @classmethod
    def uniform(cls, legal_moves: tuple[Move, ...]) -> NodeStats:
        """Fresh stats: zero regrets, uniform strategy, zero strategy sum.

        Raises:
            ValueError: If there are no legal moves (terminal history).
        """
        if not legal_moves:
            raise ValueError("Cannot create NodeStats for a history with no legal moves.")
        return cls(
            legal_moves=tuple(legal_moves),
            regret_sum=_zeros(legal_moves),
            strategy=_uniform(legal_moves),
            strategy_sum=_zeros(legal_moves),
        )

    def _check_legal(self, move: Move) -> None:
        if move not in self.strategy:
            legal = ', '.join(m.name for m in self.legal_moves)
            raise ValueError(f"Move {move.name} is not legal here (legal: {legal}).")

    def strategy_for(self, move: Move) -> float:
        self._check_legal(move)
        return self.strategy[move]

    def update_regret(self, move: Move, contribution: float) -> None:
        self._check_legal(move)
        self.regret_sum[move] += contribution

    def update_strategy(self, reach_weight: float) -> dict[Move, float]:
        """Recompute the current strategy by regret matching.

        Args:
            reach_weight: Realization weight for the strategy-sum update.

        Returns:
            The new current strategy.
        """
        positive = {m: max(0.0, self.regret_sum[m]) for m in self.legal_moves}
        total = sum(positive.values())
        if total > 0.0:
            self.strategy = {m: r / total for m, r in positive.items()}
        else:
            self.strategy = _uniform(self.legal_moves)

        for move, prob in self.strategy.items():
            self.strategy_sum[move] += reach_weight * prob
        return self.strategy

    def average_strategy(self) -> dict[Move, float]:
        """Normalised strategy sum; uniform if nothing was ever accumulated."""
        total = sum(self.strategy_sum.values())
        if total <= 0.0:
            return _uniform(self.legal_moves)
        return {m: s / total for m, s in self.strategy_sum.items()}


# ─── Per-iteration scratch state ──────────────────────────────────────────────


@dataclass
class NodeUtils:
    """Counterfactual values of one infoset within a single iteration.

    Attributes:
        value:        Σ over histories in the infoset of
                      counterfactual_reach × node value.
        move_utils:   Same sum for the value after each legal move.
        reach_weight: Σ of the realization weights of those histories.
    """

    value: float = 0.0
    move_utils: dict[Move, float] = field(default_factory=dict)
    reach_weight: float = 0.0

    @classmethod
    def for_moves(cls, legal_moves: tuple[Move, ...]) -> NodeUtils:
        return cls(move_utils=_zeros(legal_moves))


# ─── Driver-owned table ───────────────────────────────────────────────────────


@dataclass
class CfrTables:
    """InfoSet → NodeStats, created lazily and never deleted.

    Persists across iterations; this persistence is how learning happens.
    """

    nodes: dict[InfoSet, NodeStats] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, info_set: InfoSet) -> bool:
        return info_set in self.nodes

    def ensure(self, info_set: InfoSet, legal_moves: tuple[Move, ...]) -> NodeStats:
        """Return the stats for *info_set*, creating uniform ones on first visit."""
        stats = self.nodes.get(info_set)
        if stats is None:
            stats = NodeStats.uniform(legal_moves)
            self.nodes[info_set] = stats
        return stats

    def get(self, info_set: InfoSet) -> NodeStats:
        """Return existing stats.

        Raises:
            TraversalError: If the infoset was never expanded.
        """
        stats = self.nodes.get(info_set)
        if stats is None:
            raise TraversalError(
                f"No NodeStats for info set {info_set}; the forward pass did not reach it."
            )
        return stats

    def strategy_for(self, info_set: InfoSet, move: Move) -> float:
        return self.get(info_set).strategy_for(move)

    def update_regret(self, info_set: InfoSet, move: Move, contribution: float) -> None:
        self.get(info_set).update_regret(move, contribution)

    def update_strategy(
        self,
        info_set: InfoSet,
        legal_moves: tuple[Move, ...],
        reach_weight: float,
    ) -> dict[Move, float]:
        """Regret-match the infoset's strategy and accumulate its strategy sum.

        Raises:
            ValueError: If *legal_moves* disagree with the stored moves.
        """
        stats = self.get(info_set)
        if tuple(legal_moves) != stats.legal_moves:
            raise ValueError(
                f"Legal moves {legal_moves} do not match {stats.legal_moves} at {info_set}."
            )
        return stats.update_strategy(reach_weight)

    def average_strategy(
        self,
        info_set: InfoSet,
        legal_moves: tuple[Move, ...],
    ) -> dict[Move, float]:
        """Average strategy at *info_set*; uniform over *legal_moves* if unvisited."""
        stats = self.nodes.get(info_set)
        if stats is None:
            return _uniform(tuple(legal_moves))
        return stats.average_strategy()

    def average_strategies(self) -> dict[InfoSet, dict[Move, float]]:
        """Average strategy of every infoset visited so far."""
        return {info_set: stats.average_strategy() for info_set, stats in self.nodes.items()}
