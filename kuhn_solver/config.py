"""
Runtime configuration for the CFR solver.

SolverConfig is an immutable, validated bundle of solve() arguments.
``from_env`` builds one from defaults, then environment variables, then
explicit overrides (later wins):

    KUHN_SOLVER_ITERATIONS   number of CFR iterations
    KUHN_SOLVER_VARIANT      'kuhn' or 'betting_round'
    KUHN_SOLVER_SEED         integer seed, or empty / 'none' for fresh entropy
    KUHN_SOLVER_TRAVERSAL    'tabular' or 'paths'
    KUHN_SOLVER_WEIGHTING    'joint' or 'own'
    KUHN_SOLVER_LOG_EVERY    progress log interval (0 disables)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

from kuhn_solver.engine.rules import GAME_VARIANTS, GameDefinition, get_game
from kuhn_solver.solvers.cfr import TRAVERSALS, WEIGHTINGS

logger = logging.getLogger(__name__)

ENV_PREFIX = "KUHN_SOLVER_"


def _env_int(name: str, default: int | None) -> int | None:
    val = os.getenv(name)
    if val is None:
        return default
    s = val.strip()
    if s.lstrip("-").isdigit():
        return int(s)
    logger.warning("Ignoring %s=%r: not an integer, using %r", name, val, default)
    return default


def _env_str(name: str, default: str) -> str:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip().lower()


def _env_seed(name: str, default: int | None) -> int | None:
    val = os.getenv(name)
    if val is not None and val.strip().lower() in ("", "none"):
        return None
    return _env_int(name, default)


@dataclass(frozen=True)
class SolverConfig:
    """Settings for one solver run.

    Raises:
        ValueError: From ``__post_init__`` when a field is out of range or
                    names an unknown variant / traversal / weighting.
    """
    n_iterations: int = 10_000
    variant: str = "kuhn"
    seed: int | None = 42
    traversal: str = "tabular"
    weighting: str = "joint"
    log_every: int = 0

    def __post_init__(self) -> None:
        if self.n_iterations < 1:
            raise ValueError(f"n_iterations must be >= 1, got {self.n_iterations}.")
        if self.variant not in GAME_VARIANTS:
            known = ", ".join(sorted(GAME_VARIANTS))
            raise ValueError(f"Unknown variant {self.variant!r}; expected one of: {known}.")
        if self.traversal not in TRAVERSALS:
            raise ValueError(f"Unknown traversal {self.traversal!r}; expected one of {TRAVERSALS}.")
        if self.weighting not in WEIGHTINGS:
            raise ValueError(f"Unknown weighting {self.weighting!r}; expected one of {WEIGHTINGS}.")
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}.")

    @property
    def game(self) -> GameDefinition:
        return get_game(self.variant)

    @classmethod
    def from_env(cls, overrides: Mapping[str, Any] | None = None) -> SolverConfig:
        """Build a config from defaults, the environment, and *overrides*.

        Args:
            overrides: Field name → value; ``None`` values are ignored so
                       unset CLI options fall through to the environment.

        Raises:
            ValueError: On an unknown override key or an invalid value.
        """
        defaults = cls()
        values: dict[str, Any] = {
            "n_iterations": _env_int(ENV_PREFIX + "ITERATIONS", defaults.n_iterations),
            "variant": _env_str(ENV_PREFIX + "VARIANT", defaults.variant),
            "seed": _env_seed(ENV_PREFIX + "SEED", defaults.seed),
            "traversal": _env_str(ENV_PREFIX + "TRAVERSAL", defaults.traversal),
            "weighting": _env_str(ENV_PREFIX + "WEIGHTING", defaults.weighting),
            "log_every": _env_int(ENV_PREFIX + "LOG_EVERY", defaults.log_every),
        }

        known = {f.name for f in fields(cls)}
        for key, value in (overrides or {}).items():
            if key not in known:
                raise ValueError(f"Unknown config field {key!r}.")
            if value is not None:
                values[key] = value

        return cls(**values)
