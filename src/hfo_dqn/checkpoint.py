"""Equinox-based persistence for approximator parameters and solver state.

Two kinds of files are written:

- ``*.eqx`` model files hold the Q-network parameters only.  They are
  what ``DQNAgent.load_trained_model`` reads.
- ``*.solverstate`` files hold ``(model, opt_state, iteration)``.  They
  are what ``DQNAgent.restore_solver`` reads to resume training exactly.

Both are plain Equinox leaf serialisations, so loading requires a
template pytree with matching structure (a freshly initialised copy).
Each file may carry a JSON sidecar (``<file>.json``) with metadata such
as the iteration and the solver config.

Usage::

    from hfo_dqn.checkpoint import save_eqx, load_eqx, save_metadata

    save_eqx(path, model)
    save_metadata(path, {"iteration": 1000})
    model = load_eqx(path, like=model)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

import equinox as eqx

T = TypeVar("T")

logger = logging.getLogger(__name__)


def save_eqx(path: str | Path, pytree: Any) -> Path:
    """Serialise the leaves of *pytree* to *path*.

    Parent directories are created as needed.

    Returns
    -------
    The path that was written.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    eqx.tree_serialise_leaves(str(p), pytree)
    logger.debug("Wrote %s", p)
    return p


def load_eqx(path: str | Path, like: T) -> T:
    """Load a pytree saved with :func:`save_eqx`.

    Parameters
    ----------
    path:
        File to read.  A missing file raises ``FileNotFoundError``.
    like:
        Pytree with the same structure, shapes and dtypes as the saved
        one.  Its leaf values are ignored.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No such checkpoint file: {p}")
    return eqx.tree_deserialise_leaves(str(p), like)


def metadata_path(path: str | Path) -> Path:
    """Sidecar location for the checkpoint at *path*."""
    p = Path(path)
    return p.with_name(p.name + ".json")


def save_metadata(path: str | Path, metadata: dict[str, Any]) -> Path:
    """Write *metadata* as JSON next to the checkpoint at *path*."""
    meta = metadata_path(path)
    meta.parent.mkdir(parents=True, exist_ok=True)
    meta.write_text(json.dumps(metadata, indent=2, default=str) + "\n")
    return meta

