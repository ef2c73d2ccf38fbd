"""Shared fixtures.

Networks and observations are kept tiny so each jitted function
compiles in well under a second on CPU.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from hfo_dqn.dqn.config import DQNConfig, SolverConfig
from hfo_dqn.types import InputHistory, make_observation

SMALL_STATE = 4
SMALL_INPUTS = 2


@pytest.fixture
def solver_config(tmp_path: Path) -> SolverConfig:
    return SolverConfig(
        hidden_sizes=(16,),
        base_lr=1e-2,
        snapshot_prefix=str(tmp_path / "snapshots" / "dqn"),
    )


@pytest.fixture
def small_config(solver_config: SolverConfig) -> DQNConfig:
    """Three actions, a five-slot memory and clones every second update."""
    return DQNConfig(
        legal_actions=(0, 1, 2),
        replay_memory_capacity=5,
        minibatch_size=4,
        gamma=0.9,
        clone_frequency=2,
        state_size=SMALL_STATE,
        input_count=SMALL_INPUTS,
        seed=0,
        solver=solver_config,
    )


@pytest.fixture
def make_history():
    """``make_history(seed)`` -> a random window of small observations."""

    def _make(seed: int, state_size: int = SMALL_STATE, input_count: int = SMALL_INPUTS) -> InputHistory:
        rng = np.random.default_rng(seed)
        return tuple(make_observation(rng.normal(size=state_size)) for _ in range(input_count))

    return _make
