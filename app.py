"""Kuhn Poker CFR Solver — Streamlit Dashboard.

Four-tab interactive dashboard for exploring CFR results:
  Tab 1 — Strategy Heat Maps   (matplotlib, one panel per move)
  Tab 2 — Interactive Lookup   (Plotly, hover for the full info-set strategy)
  Tab 3 — Convergence          (running mean game value, equilibrium checks)
  Tab 4 — Strategy Report      (game value, strategy table, equilibrium check)

Run:
    streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Kuhn Poker CFR Solver",
    page_icon="🃏",
    layout="wide",
)

# ─── Lazy imports (inside functions to keep startup fast) ─────────────────────


@st.cache_resource
def _load_analysis_modules():
    """Import heavy analysis modules once (cached for the process lifetime)."""
    import pandas as pd

    from kuhn_solver.analysis.heat_maps import plot_convergence, plot_strategy_heatmaps
    from kuhn_solver.analysis.plotly_lookup import (
        build_convergence_figure,
        build_strategy_lookup_figure,
    )
    from kuhn_solver.analysis.strategy_report import (
        equilibrium_checks,
        print_equilibrium_check,
        print_game_value,
        print_strategy_table,
    )

    return {
        "pd": pd,
        "plot_strategy_heatmaps": plot_strategy_heatmaps,
        "plot_convergence": plot_convergence,
        "build_strategy_lookup_figure": build_strategy_lookup_figure,
        "build_convergence_figure": build_convergence_figure,
        "equilibrium_checks": equilibrium_checks,
        "print_game_value": print_game_value,
        "print_strategy_table": print_strategy_table,
        "print_equilibrium_check": print_equilibrium_check,
    }


@st.cache_resource
def _run_cfr(n_iterations: int, variant: str, seed: int, traversal: str, weighting: str):
    """Run the CFR solver and cache the result (keyed on all settings)."""
    from kuhn_solver.config import SolverConfig
    from kuhn_solver.solvers.cfr import solve_with_config

    config = SolverConfig(
        n_iterations=n_iterations,
        variant=variant,
        seed=seed,
        traversal=traversal,
        weighting=weighting,
    )
    return solve_with_config(config)


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Kuhn Poker CFR Solver")
    st.markdown("---")

    variant = st.selectbox(
        "Game variant",
        options=["kuhn", "betting_round"],
        format_func=lambda v: "Kuhn poker (Q K A)" if v == "kuhn" else "Betting round (T–A, raise)",
        index=0,
    )

    n_cfr_iterations = st.slider(
        "CFR iterations",
        min_value=1_000,
        max_value=50_000,
        value=10_000,
        step=1_000,
    )

    seed = st.number_input("Seed", min_value=0, value=42, step=1)
    traversal = st.radio("Backward pass", options=["tabular", "paths"], horizontal=True)
    weighting = st.radio("Strategy weighting", options=["joint", "own"], horizontal=True)

    run_cfr = st.button("Run CFR Solver", type="primary")

    st.markdown("---")
    st.caption("Chance-sampled CFR · average strategy converges to equilibrium")

# ─── CFR solver result ────────────────────────────────────────────────────────

# Trigger CFR solve if the button was pressed or a cached result exists.
cfr_result = None
if run_cfr or "cfr_result_cached" in st.session_state:
    with st.spinner(f"Running CFR ({n_cfr_iterations:,} iterations) …"):
        cfr_result = _run_cfr(n_cfr_iterations, variant, int(seed), traversal, weighting)
    st.session_state["cfr_result_cached"] = True
    st.sidebar.success(
        f"CFR done — game value: {cfr_result.mean_game_value:+.4f} | "
        f"Exploitability: {cfr_result.exploitability:.4f}"
    )

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3, tab4 = st.tabs(
    [
        "Strategy Heat Maps",
        "Interactive Plotly Lookup",
        "Convergence",
        "Strategy Report",
    ]
)

_NEEDS_SOLVE = "Press **Run CFR Solver** in the sidebar to compute a strategy."

m = _load_analysis_modules()

# ── Tab 1: Strategy Heat Maps ─────────────────────────────────────────────────

with tab1:
    st.header("Strategy Heat Maps")
    st.caption(
        "Rows = private card | Cols = public history ('-' = root, k/b/c/r/f = "
        "check/bet/call/raise/fold) | Grey = move not legal"
    )

    if cfr_result is not None:
        fig_heat = m["plot_strategy_heatmaps"](cfr_result, show=False)
        st.pyplot(fig_heat)
    else:
        st.info(_NEEDS_SOLVE)

# ── Tab 2: Interactive Plotly Lookup ─────────────────────────────────────────

with tab2:
    st.header("Interactive Plotly Strategy Lookup")
    st.caption("Hover over any cell to see the full average strategy at that info set.")

    if cfr_result is not None:
        fig_lookup = m["build_strategy_lookup_figure"](cfr_result)
        st.plotly_chart(fig_lookup, use_container_width=True)
    else:
        st.info(_NEEDS_SOLVE)

# ── Tab 3: Convergence ────────────────────────────────────────────────────────

with tab3:
    st.header("Convergence")

    if cfr_result is not None:
        col1, col2, col3 = st.columns(3)
        col1.metric("Mean game value", f"{cfr_result.mean_game_value:+.5f}")
        col2.metric("Profile value", f"{cfr_result.profile_value:+.5f}")
        col3.metric("Exploitability", f"{cfr_result.exploitability:.5f}")

        st.plotly_chart(m["build_convergence_figure"](cfr_result), use_container_width=True)

        st.markdown("---")
        st.subheader("Matplotlib view")
        st.pyplot(m["plot_convergence"](cfr_result, show=False))

        checks = m["equilibrium_checks"](cfr_result)
        if checks:
            st.markdown("---")
            st.subheader("Equilibrium Conditions")
            pd = m["pd"]
            rows = [
                {
                    "Condition": c.description,
                    "Observed": round(c.observed, 4),
                    "Low": round(max(c.low, 0.0), 4),
                    "High": round(min(c.high, 1.0), 4),
                    "OK": c.ok,
                }
                for c in checks
            ]
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info(_NEEDS_SOLVE)

# ── Tab 4: Strategy Report ────────────────────────────────────────────────────

with tab4:
    st.header("Strategy Report")

    if cfr_result is not None:
        for section_fn, label in [
            (m["print_game_value"], "Game Value Summary"),
            (m["print_strategy_table"], "Average Strategy"),
            (m["print_equilibrium_check"], "Equilibrium Check"),
        ]:
            st.subheader(label)
            buf = io.StringIO()
            with contextlib.redirect_stdout(buf):
                section_fn(cfr_result)
            st.code(buf.getvalue(), language=None)
    else:
        st.info(_NEEDS_SOLVE)
