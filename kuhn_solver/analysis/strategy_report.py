"""Strategy report for the Kuhn-variant CFR solver.

Three public functions format a CfrResult into human-readable tables:

    print_game_value(result)        — mean / exact game value, exploitability
    print_strategy_table(result)    — average strategy at every info set
    print_equilibrium_check(result) — Kuhn poker's analytic equilibrium family

Run as a module to solve and print everything:

    python -m kuhn_solver.analysis.strategy_report --iterations 20000 --seed 7
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import NamedTuple

from kuhn_solver.config import SolverConfig
from kuhn_solver.engine.cards import card_to_str
from kuhn_solver.engine.game_state import MOVE_NAMES, Move
from kuhn_solver.engine.rules import KUHN
from kuhn_solver.solvers.cfr import CfrResult, get_strategy, solve_with_config
from kuhn_solver.solvers.information_sets import (
    InfoSet,
    enumerate_decision_histories,
    make_info_set,
)

logger = logging.getLogger(__name__)

_BANNER = "=" * 56


class EquilibriumCheck(NamedTuple):
    """One analytic equilibrium condition and how the solved strategy fares."""
    description: str
    observed: float
    low: float
    high: float

    @property
    def ok(self) -> bool:
        return self.low <= self.observed <= self.high


# ─── Equilibrium conditions ───────────────────────────────────────────────────

def _prob(result: CfrResult, info_set: InfoSet, move: Move) -> float:
    return get_strategy(result, info_set).get(move, 0.0)


def equilibrium_checks(result: CfrResult, tol: float = 0.05) -> list[EquilibriumCheck]:
    """Compare a Kuhn poker solution with the known equilibrium family.

    Player 0 bets the lowest card with some α ∈ [0, 1/3], always checks the
    middle card, and bets the highest card with 3α. Player 1's strategy is
    unique: bluff the lowest card 1/3 after a check, call a bet with the
    middle card 1/3, always bet / call with the highest card.

    Args:
        result: CfrResult for the KUHN game.
        tol:    Slack added to every bound.

    Returns:
        One EquilibriumCheck per condition; empty for games without an
        analytic solution.
    """
    if result.game is not KUHN:
        return []

    low, mid, high = result.game.cards
    alpha = _prob(result, make_info_set(low), Move.BET)
    third = 1.0 / 3.0

    return [
        EquilibriumCheck(
            f"P0 {card_to_str(low)}: bet (α)", alpha, -tol, third + tol),
        EquilibriumCheck(
            f"P0 {card_to_str(mid)}: bet", _prob(result, make_info_set(mid), Move.BET), -tol, tol),
        EquilibriumCheck(
            f"P0 {card_to_str(high)}: bet (3α)",
            _prob(result, make_info_set(high), Move.BET), 3 * alpha - 3 * tol, 3 * alpha + 3 * tol),
        EquilibriumCheck(
            f"P1 {card_to_str(low)}: bet after check",
            _prob(result, make_info_set(low, Move.CHECK), Move.BET), third - tol, third + tol),
        EquilibriumCheck(
            f"P1 {card_to_str(mid)}: call a bet",
            _prob(result, make_info_set(mid, Move.BET), Move.CALL), third - tol, third + tol),
        EquilibriumCheck(
            f"P1 {card_to_str(high)}: call a bet",
            _prob(result, make_info_set(high, Move.BET), Move.CALL), 1.0 - tol, 1.0 + tol),
    ]


# ─── Public report functions ──────────────────────────────────────────────────

def print_game_value(result: CfrResult) -> None:
    """Print game value summary and exploitability.

    Args:
        result: CfrResult returned by cfr.solve().
    """
    print(_BANNER)
    print(f"Game Value Summary  ({result.game.name})")
    print(_BANNER)
    print(f"  Mean game value:  {result.mean_game_value:+.5f}  (player 0, sampled)")
    print(f"  Profile value:    {result.profile_value:+.5f}  (player 0, exact)")
    if result.game.known_value is not None:
        gap = result.mean_game_value - result.game.known_value
        print(f"  Known value:      {result.game.known_value:+.5f}  (gap {gap:+.5f})")
    print(f"  Exploitability:   {result.exploitability:.5f}")
    print(f"  Iterations:       {result.n_iterations}")
    print(f"  Info sets:        {len(result.average_strategy)}")
    print(f"  Traversal:        {result.traversal}  (weighting {result.weighting})")
    print()


def print_strategy_table(result: CfrResult) -> None:
    """Print the average strategy at every decision point.

    One block per public history (breadth-first), one row per card. Columns
    are the game's moves; moves that are illegal at a history show ``-``.
    """
    moves = result.game.moves
    header = "".join(f"{'P(' + MOVE_NAMES[m] + ')':>8}" for m in moves)

    print(_BANNER)
    print("Average Strategy")
    print(_BANNER)
    for history in enumerate_decision_histories(result.game):
        print(f"  History {history}  (player {history.player_to_move.value} to move)")
        print(f"  {'Card':>4}{header}")
        for card in result.game.cards:
            probs = get_strategy(result, InfoSet(card, history))
            cells = "".join(
                f"{probs[m]:>8.3f}" if m in probs else f"{'-':>8}" for m in moves
            )
            print(f"  {card_to_str(card):>4}{cells}")
        print()


def print_equilibrium_check(result: CfrResult, tol: float = 0.05) -> None:
    """Print each analytic equilibrium condition with PASS / FAIL."""
    print(_BANNER)
    print("Equilibrium Check")
    print(_BANNER)
    checks = equilibrium_checks(result, tol)
    if not checks:
        print(f"  (no analytic equilibrium known for {result.game.name})")
        print()
        return

    print(f"  {'Condition':<28}{'Observed':>9}  {'Range':>15}  Status")
    for check in checks:
        bounds = f"[{max(check.low, 0.0):.3f}, {min(check.high, 1.0):.3f}]"
        status = "PASS" if check.ok else "FAIL"
        print(f"  {check.description:<28}{check.observed:>9.4f}  {bounds:>15}  {status}")
    print()


# ─── CLI ──────────────────────────────────────────────────────────────────────

FRESH_SEED = "none"


def _seed_arg(value: str) -> int | str:
    if value.strip().lower() == FRESH_SEED:
        return FRESH_SEED
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid seed {value!r}; expected an integer or 'none'") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve a Kuhn poker variant with CFR and print the strategy report.",
    )
    parser.add_argument("--iterations", type=int, dest="n_iterations", help="CFR iterations")
    parser.add_argument("--variant", choices=("kuhn", "betting_round"), help="game variant")
    parser.add_argument(
        "--seed", type=_seed_arg, help="deck shuffle seed, or 'none' for fresh entropy",
    )
    parser.add_argument("--traversal", choices=("tabular", "paths"), help="backward-pass traversal")
    parser.add_argument("--weighting", choices=("joint", "own"), help="strategy-sum weighting")
    parser.add_argument("--log-every", type=int, dest="log_every", help="progress log interval")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at INFO level")
    return parser


def main(argv: list[str] | None = None) -> CfrResult:
    """Parse arguments, solve, print all reports and return the result."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {k: v for k, v in vars(args).items() if k != "verbose"}
    fresh_seed = overrides.get("seed") == FRESH_SEED
    if fresh_seed:
        overrides["seed"] = None
    config = SolverConfig.from_env(overrides)
    if fresh_seed:
        config = replace(config, seed=None)
    logger.info("Running with %s", config)

    result = solve_with_config(config)
    print_game_value(result)
    print_strategy_table(result)
    print_equilibrium_check(result)
    return result


if __name__ == "__main__":
    main()
