"""Tests for kuhn_solver/config.py — SolverConfig validation and env overrides."""

from __future__ import annotations

import pytest

from kuhn_solver.config import SolverConfig
from kuhn_solver.engine.rules import BETTING_ROUND, KUHN
from kuhn_solver.solvers.cfr import solve_with_config

_ENV_VARS = (
    "KUHN_SOLVER_ITERATIONS",
    "KUHN_SOLVER_VARIANT",
    "KUHN_SOLVER_SEED",
    "KUHN_SOLVER_TRAVERSAL",
    "KUHN_SOLVER_WEIGHTING",
    "KUHN_SOLVER_LOG_EVERY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestValidation:
    def test_defaults(self):
        config = SolverConfig()
        assert config.variant == "kuhn"
        assert config.traversal == "tabular"
        assert config.weighting == "joint"
        assert config.game is KUHN

    def test_game_property(self):
        assert SolverConfig(variant="betting_round").game is BETTING_ROUND

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"n_iterations": 0}, "n_iterations"),
            ({"variant": "leduc"}, "variant"),
            ({"traversal": "bfs"}, "traversal"),
            ({"weighting": "linear"}, "weighting"),
            ({"log_every": -1}, "log_every"),
        ],
    )
    def test_invalid(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            SolverConfig(**kwargs)

    def test_frozen(self):
        config = SolverConfig()
        with pytest.raises(AttributeError):
            config.n_iterations = 5


class TestFromEnv:
    def test_no_env_gives_defaults(self):
        assert SolverConfig.from_env() == SolverConfig()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("KUHN_SOLVER_ITERATIONS", "250")
        monkeypatch.setenv("KUHN_SOLVER_VARIANT", "Betting_Round")
        monkeypatch.setenv("KUHN_SOLVER_TRAVERSAL", "paths")
        monkeypatch.setenv("KUHN_SOLVER_WEIGHTING", "own")
        monkeypatch.setenv("KUHN_SOLVER_LOG_EVERY", "50")
        config = SolverConfig.from_env()
        assert config.n_iterations == 250
        assert config.variant == "betting_round"
        assert config.traversal == "paths"
        assert config.weighting == "own"
        assert config.log_every == 50

    def test_seed_none(self, monkeypatch):
        monkeypatch.setenv("KUHN_SOLVER_SEED", "none")
        assert SolverConfig.from_env().seed is None

    def test_bad_int_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("KUHN_SOLVER_ITERATIONS", "lots")
        assert SolverConfig.from_env().n_iterations == SolverConfig().n_iterations
        assert "KUHN_SOLVER_ITERATIONS" in caplog.text

    def test_overrides_beat_environment(self, monkeypatch):
        monkeypatch.setenv("KUHN_SOLVER_ITERATIONS", "250")
        config = SolverConfig.from_env({"n_iterations": 40, "seed": None})
        assert config.n_iterations == 40
        # None overrides fall through.
        assert config.seed == SolverConfig().seed

    def test_unknown_override(self):
        with pytest.raises(ValueError, match="Unknown config field"):
            SolverConfig.from_env({"iterations": 5})

    def test_invalid_env_value_raises(self, monkeypatch):
        monkeypatch.setenv("KUHN_SOLVER_TRAVERSAL", "bfs")
        with pytest.raises(ValueError, match="traversal"):
            SolverConfig.from_env()


class TestSolveWithConfig:
    def test_runs_configured_solve(self):
        config = SolverConfig(n_iterations=50, seed=3, traversal="paths", weighting="own")
        result = solve_with_config(config)
        assert result.n_iterations == 50
        assert result.traversal == "paths"
        assert result.weighting == "own"
        assert result.game is KUHN

    def test_annotated_with_config_type(self):
        assert solve_with_config.__annotations__["config"] == "SolverConfig"
