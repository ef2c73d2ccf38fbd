"""Tests for hfo_dqn.run_dir."""

from __future__ import annotations

import json
import os
from pathlib import Path

from hfo_dqn.dqn.config import DQNConfig
from hfo_dqn.run_dir import RunDir


class TestRunDir:
    def test_creates_subdirs(self, tmp_path: Path) -> None:
        run = RunDir("exp", base_dir=tmp_path)
        assert run.snapshots.is_dir()
        assert run.logs.is_dir()
        assert run.root.name.startswith("exp_")

    def test_explicit_run_id(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="fixed")
        assert run.root == tmp_path / "fixed"

    def test_paths(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r")
        assert run.snapshot_prefix() == run.snapshots / "dqn"
        assert run.log_path() == run.logs / "metrics.jsonl"
        assert os.fspath(run) == str(run.root) == str(run)
        assert "RunDir" in repr(run)

    def test_save_dqn_config(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r")
        path = run.save_config({"dqn": DQNConfig(gamma=0.95)})
        assert path == run.root / "config.json"
        loaded = json.loads(path.read_text())
        assert loaded["dqn"]["gamma"] == 0.95
        assert loaded["dqn"]["legal_actions"] == [0, 1, 2, 3, 4]
        assert loaded["dqn"]["solver"]["optimizer"] == "adam"

    def test_solver_state_discovery(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r")
        assert run.latest_solver_state is None
        for it in (100, 2000, 300):
            (run.snapshots / f"dqn_iter_{it}.solverstate").write_bytes(b"")
            (run.snapshots / f"dqn_iter_{it}.eqx").write_bytes(b"")
        (run.snapshots / "dqn_iter_2000.solverstate.json").write_text("{}")

        states = run.list_solver_states()
        assert [it for it, _ in states] == [100, 300, 2000]
        assert run.latest_solver_state == run.snapshots / "dqn_iter_2000.solverstate"

