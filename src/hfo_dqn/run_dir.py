"""Output directory layout for a single training run::

    runs/
    └── penalty_kick_dqn_20260215_143022/
        ├── config.json
        ├── snapshots/
        │   ├── dqn_iter_10000.eqx
        │   ├── dqn_iter_10000.solverstate
        │   └── dqn_iter_10000.solverstate.json
        └── logs/
            └── metrics.jsonl

Usage::

    run = RunDir("penalty_kick_dqn", base_dir="runs")
    run.save_config(config)
    solver = SolverConfig(snapshot_prefix=str(run.snapshot_prefix()))
    run.log_path()                  # logs/metrics.jsonl
    run.latest_solver_state         # newest *.solverstate, or None (RunnerConfig.resume)
"""

from __future__ import annotations

import dataclasses
import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

_SOLVERSTATE_RE = re.compile(r"_iter_(\d+)\.solverstate$")


def _timestamp() -> str:
    return datetime.now(tz=UTC).strftime("%Y%m%d_%H%M%S")


class RunDir:
    """Handle for one experiment's output directory.

    Parameters
    ----------
    experiment_name:
        Combined with a UTC timestamp to form the directory name.
    base_dir:
        Parent directory for all runs.
    run_id:
        Explicit directory name, bypassing the timestamp.  Use it to
        resume a run or for deterministic paths in tests.
    """

    def __init__(
        self,
        experiment_name: str = "default",
        base_dir: str | Path = "runs",
        *,
        run_id: str | None = None,
    ) -> None:
        self._base_dir = Path(base_dir)
        dirname = run_id if run_id is not None else f"{experiment_name}_{_timestamp()}"
        self._root = self._base_dir / dirname

        for subdir in ("snapshots", "logs"):
            (self._root / subdir).mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return self._root

    @property
    def snapshots(self) -> Path:
        """Directory for model and solver-state snapshots."""
        return self._root / "snapshots"

    @property
    def logs(self) -> Path:
        return self._root / "logs"

    def snapshot_prefix(self, name: str = "dqn") -> Path:
        """Prefix handed to ``SolverConfig.snapshot_prefix``."""
        return self.snapshots / name

    def log_path(self, filename: str = "metrics.jsonl") -> Path:
        return self.logs / filename

    # ------------------------------------------------------------------
    # Config snapshot
    # ------------------------------------------------------------------

    def save_config(self, config: Any, filename: str = "config.json") -> Path:
        """Serialise *config* (dataclass or dict) to JSON in the run root."""
        path = self._root / filename
        path.write_text(json.dumps(_config_to_dict(config), indent=2, default=str) + "\n")
        return path

    # ------------------------------------------------------------------
    # Snapshot discovery
    # ------------------------------------------------------------------

    def list_solver_states(self) -> list[tuple[int, Path]]:
        """Sorted ``(iteration, path)`` pairs for every ``*.solverstate``."""
        result: list[tuple[int, Path]] = []
        for entry in self.snapshots.iterdir():
            match = _SOLVERSTATE_RE.search(entry.name)
            if entry.is_file() and match:
                result.append((int(match.group(1)), entry))
        result.sort()
        return result

    @property
    def latest_solver_state(self) -> Path | None:
        states = self.list_solver_states()
        return states[-1][1] if states else None

    def __repr__(self) -> str:
        return f"RunDir({self._root})"

    def __str__(self) -> str:
        return str(self._root)

    def __fspath__(self) -> str:
        return str(self._root)


def _config_to_dict(obj: Any) -> Any:
    """Recursively convert a config object to plain JSON-able values."""
    if isinstance(obj, dict):
        return {k: _config_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: _config_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (list, tuple)):
        return [_config_to_dict(v) for v in obj]
    return obj

