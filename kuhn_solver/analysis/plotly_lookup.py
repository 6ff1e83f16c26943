"""Interactive Plotly strategy lookup for the Kuhn-variant CFR solver.

Three public functions:

    build_strategy_lookup_figure(result)
        — One heatmap panel per move; hover shows the full info-set strategy.
    build_convergence_figure(result)
        — Running mean game value with the known equilibrium value.
    save_lookup_html(fig, path)
        — Export any figure to a self-contained HTML file.

Figures open in a browser via ``fig.show()`` or embed in Jupyter notebooks
and the Streamlit dashboard.
"""

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from kuhn_solver.analysis.heat_maps import axis_labels, build_strategy_matrix
from kuhn_solver.engine.cards import card_to_str
from kuhn_solver.engine.game_state import MOVE_NAMES, Move
from kuhn_solver.solvers.cfr import CfrResult
from kuhn_solver.solvers.information_sets import InfoSet, enumerate_decision_histories

_COLORSCALE: str = "RdYlGn"


# ─── Hover text builder ───────────────────────────────────────────────────────


def _build_hover(result: CfrResult, data: np.ndarray, move: Move) -> list[list[str]]:
    """Return an (n_cards × n_histories) list of hover strings for one panel.

    Each non-NaN cell shows the card, history, player to move, P(move) and
    the complete strategy at that info set.
    """
    histories = enumerate_decision_histories(result.game)
    rows: list[list[str]] = []
    for r, card in enumerate(result.game.cards):
        row: list[str] = []
        for c, history in enumerate(histories):
            val = data[r, c]
            if np.isnan(val):
                row.append("")
                continue
            probs = result.average_strategy[InfoSet(card, history)]
            full = ", ".join(f"{MOVE_NAMES[m]}={p:.3f}" for m, p in probs.items())
            lines = [
                f"Card: <b>{card_to_str(card)}</b>",
                f"History: {history}",
                f"Player: {history.player_to_move.value}",
                f"P({move.name}): <b>{val:.3f}</b>",
                f"Strategy: {full}",
            ]
            row.append("<br>".join(lines))
        rows.append(row)
    return rows


# ─── Trace builder ────────────────────────────────────────────────────────────


def _make_heatmap_trace(
    data: np.ndarray,
    hover_text: list[list[str]],
    row_labels: list[str],
    col_labels: list[str],
    *,
    name: str,
    showscale: bool = True,
) -> go.Heatmap:
    """Build one go.Heatmap trace for a strategy panel.

    NaN values in *data* are converted to None so Plotly renders them as
    blank (transparent) cells.
    """
    z = [[None if np.isnan(v) else v for v in row] for row in data.tolist()]
    return go.Heatmap(
        z=z,
        x=col_labels,
        y=row_labels,
        colorscale=_COLORSCALE,
        zmin=0.0,
        zmax=1.0,
        text=hover_text,
        hovertemplate="%{text}<extra></extra>",
        showscale=showscale,
        colorbar={"title": "Probability"},
        name=name,
    )


# ─── Public figure builders ───────────────────────────────────────────────────


def build_strategy_lookup_figure(result: CfrResult) -> go.Figure:
    """Build an interactive figure of the average strategy.

    Args:
        result: CfrResult from cfr.solve().

    Returns:
        go.Figure with one heatmap trace per move of the game, side by side.
    """
    moves = result.game.moves
    row_labels, col_labels = axis_labels(result)

    fig = make_subplots(
        rows=1,
        cols=len(moves),
        subplot_titles=[f"P({m.name})" for m in moves],
        horizontal_spacing=0.05,
    )
    for col, move in enumerate(moves, start=1):
        data = build_strategy_matrix(result, move)
        fig.add_trace(
            _make_heatmap_trace(
                data,
                _build_hover(result, data, move),
                row_labels,
                col_labels,
                name=move.name,
                showscale=col == len(moves),
            ),
            row=1,
            col=col,
        )

    fig.update_layout(
        title_text=f"CFR Strategy Lookup — {result.game.name}",
        title_font_size=15,
        height=420,
        width=260 * len(moves) + 120,
    )
    fig.update_yaxes(title_text="Card", col=1)
    fig.update_xaxes(title_text="History")
    return fig


def build_convergence_figure(result: CfrResult) -> go.Figure:
    """Build an interactive line chart of the running mean game value."""
    running = result.running_mean()
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=np.arange(1, len(running) + 1),
            y=running,
            mode="lines",
            name="Mean game value",
        )
    )
    if result.game.known_value is not None:
        fig.add_hline(
            y=result.game.known_value,
            line_dash="dash",
            line_color="#d62728",
            annotation_text=f"Known value {result.game.known_value:+.4f}",
        )
    fig.update_layout(
        title_text=f"CFR Convergence — {result.game.name}",
        xaxis_title="Iteration",
        yaxis_title="Player 0 value",
        xaxis_type="log",
        height=420,
    )
    return fig


# ─── HTML export ──────────────────────────────────────────────────────────────


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Save a Plotly figure to a self-contained HTML file.

    Plotly JS is loaded from the CDN so the file itself remains compact.
    """
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from kuhn_solver.engine.rules import get_game
    from kuhn_solver.solvers.cfr import solve

    n_iter = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000
    variant = sys.argv[2] if len(sys.argv) > 2 else "kuhn"
    print(f"Running CFR on {variant} for {n_iter} iterations …")
    result = solve(n_iterations=n_iter, game=get_game(variant), seed=0)

    print("Building interactive lookup figures …")
    save_lookup_html(build_strategy_lookup_figure(result), f"{variant}_lookup.html")
    save_lookup_html(build_convergence_figure(result), f"{variant}_convergence.html")
    print(f"Saved: {variant}_lookup.html, {variant}_convergence.html")
