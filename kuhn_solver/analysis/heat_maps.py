"""Strategy heat maps and convergence plot for the Kuhn-variant CFR solver.

One public data-builder returns a NumPy matrix that can be used
programmatically or passed to the plot helpers:

    build_strategy_matrix(result, move)  — P(move) by (card, history)

Two public plot functions render matplotlib figures:

    plot_strategy_heatmaps(result, ...)  — one panel per move of the game
    plot_convergence(result, ...)        — running mean game value

Matrix convention:
    Shape  : (n_cards, n_histories) — rows = game cards, lowest first,
             cols = decision histories, breadth-first from the root
    Values : P(move) in [0, 1]
             np.nan = move illegal at that history, or info set never visited
"""

from __future__ import annotations

import matplotlib
import matplotlib.axes
import matplotlib.colors
import matplotlib.figure
import matplotlib.image
import matplotlib.pyplot as plt
import numpy as np

from kuhn_solver.engine.cards import card_to_str
from kuhn_solver.engine.game_state import Move
from kuhn_solver.engine.rules import legal_next_moves
from kuhn_solver.solvers.cfr import CfrResult
from kuhn_solver.solvers.information_sets import InfoSet, enumerate_decision_histories

# ─── Constants ────────────────────────────────────────────────────────────────

_NAN_COLOR: str = "#cccccc"


def _make_continuous_cmap() -> matplotlib.colors.Colormap:
    """RdYlGn gradient: red=P(move)=0, green=P(move)=1, grey=absent (NaN)."""
    cmap = matplotlib.colormaps["RdYlGn"].copy()
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


_CONTINUOUS_CMAP: matplotlib.colors.Colormap = _make_continuous_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def axis_labels(result: CfrResult) -> tuple[list[str], list[str]]:
    """Return (row_labels, col_labels): card names and history strings."""
    rows = [card_to_str(c) for c in result.game.cards]
    cols = [str(h) for h in enumerate_decision_histories(result.game)]
    return rows, cols


def build_strategy_matrix(result: CfrResult, move: Move) -> np.ndarray:
    """Return P(move) for every (card, decision history) pair.

    Args:
        result: CfrResult returned by cfr.solve().
        move:   Move whose probability fills the matrix.

    Returns:
        float64 array of shape (n_cards, n_histories).
    """
    game = result.game
    histories = enumerate_decision_histories(game)
    data = np.full((len(game.cards), len(histories)), np.nan)

    for c, history in enumerate(histories):
        if move not in legal_next_moves(history, game):
            continue
        for r, card in enumerate(game.cards):
            probs = result.average_strategy.get(InfoSet(card, history))
            if probs is not None:
                data[r, c] = probs[move]

    return data


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    data: np.ndarray,
    row_labels: list[str],
    col_labels: list[str],
) -> matplotlib.image.AxesImage:
    """Render one heat-map panel onto *ax* and return the AxesImage.

    Sets axis ticks, tick labels, and cell annotations.  The caller is
    responsible for setting title, xlabel, and ylabel.
    """
    masked = np.ma.masked_invalid(data)
    im = ax.imshow(masked, cmap=_CONTINUOUS_CMAP, vmin=0.0, vmax=1.0, aspect="auto")

    ax.set_xticks(range(len(col_labels)))
    ax.set_xticklabels(col_labels, fontsize=9)
    ax.set_yticks(range(len(row_labels)))
    ax.set_yticklabels(row_labels, fontsize=9)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            val = data[r, c]
            if np.isnan(val):
                continue
            text_color = "black" if 0.25 < val < 0.75 else "white"
            ax.text(
                c,
                r,
                f"{val:.2f}",
                ha="center",
                va="center",
                fontsize=9,
                color=text_color,
                fontweight="bold",
            )

    return im


def _finish(fig: matplotlib.figure.Figure, show: bool, save_path: str | None) -> None:
    plt.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_strategy_heatmaps(
    result: CfrResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the average strategy as one heat map per move of the game.

    Args:
        result:    CfrResult from cfr.solve().
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure with one axes per move (plus colorbar).
    """
    moves = result.game.moves
    row_labels, col_labels = axis_labels(result)

    fig, axes = plt.subplots(1, len(moves), figsize=(3.2 * len(moves), 4), squeeze=False)
    fig.suptitle(
        f"CFR Average Strategy  ({result.game.name}, {result.n_iterations} iterations)",
        fontsize=13,
        fontweight="bold",
    )

    im = None
    for col, move in enumerate(moves):
        ax = axes[0, col]
        im = _render_panel(ax, build_strategy_matrix(result, move), row_labels, col_labels)
        ax.set_title(f"P({move.name})", fontsize=10)
        ax.set_xlabel("History", fontsize=9)
        if col == 0:
            ax.set_ylabel("Card", fontsize=9)

    fig.colorbar(im, ax=axes[0, -1], label="Probability", fraction=0.046, pad=0.04)
    _finish(fig, show, save_path)
    return fig


def plot_convergence(
    result: CfrResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the running mean game value against the iteration count.

    Draws the game's known equilibrium value as a dashed line when it has one.
    """
    running = result.running_mean()
    iterations = np.arange(1, len(running) + 1)

    fig, ax = plt.subplots(figsize=(8, 4.5))
    ax.plot(iterations, running, color="#1f77b4", linewidth=1.2, label="Mean game value")
    if result.game.known_value is not None:
        ax.axhline(
            result.game.known_value,
            color="#d62728",
            linestyle="--",
            linewidth=1.0,
            label=f"Known value ({result.game.known_value:+.4f})",
        )
    ax.set_xscale("log")
    ax.set_xlabel("Iteration", fontsize=9)
    ax.set_ylabel("Player 0 value", fontsize=9)
    ax.set_title(f"CFR Convergence  ({result.game.name})", fontsize=12, fontweight="bold")
    ax.legend(fontsize=9)
    ax.grid(alpha=0.3)

    _finish(fig, show, save_path)
    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from kuhn_solver.engine.rules import get_game
    from kuhn_solver.solvers.cfr import solve

    n_iter = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000
    variant = sys.argv[2] if len(sys.argv) > 2 else "kuhn"
    print(f"Running CFR on {variant} for {n_iter} iterations …")
    result = solve(n_iterations=n_iter, game=get_game(variant), seed=0)

    print("Generating strategy heat maps …")
    plot_strategy_heatmaps(result, show=False, save_path=f"{variant}_strategy.png")
    plot_convergence(result, show=False, save_path=f"{variant}_convergence.png")
    print(f"Saved: {variant}_strategy.png, {variant}_convergence.png")
