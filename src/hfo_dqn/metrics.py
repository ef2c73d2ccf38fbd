"""Console logging and JSONL records for DQN training.

Console output goes through the stdlib ``logging`` tree rooted at the
``hfo_dqn`` logger; :func:`setup_logging` installs a compact formatter::

    I 2026-02-15 14:30:22.123 [hfo_dqn.metrics] step 5000/100000 (5.0%) | iteration=4001 loss=0.042

The runner flattens the agent's latest ``UpdateMetrics`` with
:func:`training_record` and each ``EvalMetrics`` with :func:`eval_record`
(keys under ``eval/``).  :class:`MetricsLogger` appends both kinds to
one JSONL file, usually ``logs/metrics.jsonl`` inside a
:class:`~hfo_dqn.run_dir.RunDir`::

    with MetricsLogger(run.log_path()) as metrics:
        metrics.write(training_record(step, iteration, update, epsilon=eps, episode_returns=returns))
        metrics.write(eval_record(step, evaluate(agent, env, params, ...)))
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from hfo_dqn.dqn.update import UpdateMetrics
    from hfo_dqn.runner.evaluator import EvalMetrics

logger = logging.getLogger(__name__)

EVAL_PREFIX = "eval/"
RETURN_WINDOW = 10  # finished episodes averaged into mean_return

_LEVEL_ABBREV = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "E",
    logging.CRITICAL: "C",
}


class _TrainFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        lvl = _LEVEL_ABBREV.get(record.levelno, "?")
        ts = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        return f"{lvl} {ts}.{int(record.msecs):03d} [{record.name}] {record.getMessage()}"


def setup_logging(level: int = logging.INFO) -> None:
    """Route ``hfo_dqn`` loggers to stderr with compact formatting.

    Safe to call multiple times; existing handlers are replaced.
    """
    root = logging.getLogger("hfo_dqn")
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(_TrainFormatter())
    root.addHandler(handler)
    root.propagate = False


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def training_record(
    step: int,
    iteration: int,
    update: UpdateMetrics,
    *,
    epsilon: float,
    episode_returns: Sequence[float],
) -> dict[str, Any]:
    """Flatten the most recent ``UpdateMetrics`` into one training record.

    ``mean_return`` averages the last ``RETURN_WINDOW`` finished episodes
    and is 0.0 until the first one ends.
    """
    recent = episode_returns[-RETURN_WINDOW:]
    return {
        "step": step,
        "iteration": iteration,
        "loss": float(update.loss),
        "q_mean": float(update.q_mean),
        "td_target_mean": float(update.td_target_mean),
        "epsilon": float(epsilon),
        "episodes": len(episode_returns),
        "mean_return": float(np.mean(recent)) if len(recent) else 0.0,
    }


def eval_record(step: int, metrics: EvalMetrics) -> dict[str, Any]:
    """``EvalMetrics`` keyed under ``eval/`` next to the step."""
    return {
        "step": step,
        **{EVAL_PREFIX + name: float(value) for name, value in metrics._asdict().items()},
    }


def log_training_progress(step: int, total_steps: int, record: dict[str, Any]) -> None:
    pct = 100.0 * step / total_steps if total_steps > 0 else 0.0
    fields = " ".join(
        f"{k}={v:.4g}" if isinstance(v, float) else f"{k}={v}"
        for k, v in record.items()
        if k != "step"
    )
    logger.info("step %d/%d (%.1f%%) | %s", step, total_steps, pct, fields)


def log_evaluation(step: int, metrics: EvalMetrics) -> None:
    logger.info(
        "eval at step %d: return %.3f +/- %.3f, length %.1f",
        step, metrics.mean_return, metrics.std_return, metrics.mean_length,
    )


# ---------------------------------------------------------------------------
# MetricsLogger
# ---------------------------------------------------------------------------


class MetricsLogger:
    """Append-only JSONL file of training and evaluation records.

    Each line is one record plus ``wall_time``, the seconds since the
    logger was opened.  Array scalars are stored as Python numbers.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: IO[str] = open(self._path, "a")  # noqa: SIM115
        self._start_time = time.monotonic()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, record: dict[str, Any]) -> None:
        row = {k: _to_python(v) for k, v in record.items()}
        row.setdefault("wall_time", round(time.monotonic() - self._start_time, 3))
        self._file.write(json.dumps(row) + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> MetricsLogger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _to_python(val: Any) -> Any:
    if hasattr(val, "item") and np.ndim(val) == 0:
        return val.item()
    return val
