"""hfo_dqn: Deep Q-learning for Half Field Offense style tasks, with JAX."""

from hfo_dqn.checkpoint import load_eqx, save_eqx
from hfo_dqn.dataprotocol import ReplayMemory
from hfo_dqn.dqn import DQNAgent, DQNConfig, SolverConfig
from hfo_dqn.env import make
from hfo_dqn.errors import ConfigError, DQNError, InsufficientMemoryError, NotInitializedError
from hfo_dqn.metrics import MetricsLogger, setup_logging
from hfo_dqn.run_dir import RunDir
from hfo_dqn.schedule import linear_schedule
from hfo_dqn.seeding import make_rng, split_key
from hfo_dqn.types import (
    TERMINAL,
    InputHistory,
    StateObservation,
    Successor,
    Terminal,
    Transition,
    advance_history,
    initial_history,
    make_observation,
)

__all__ = [
    "ConfigError",
    "DQNAgent",
    "DQNConfig",
    "DQNError",
    "InputHistory",
    "InsufficientMemoryError",
    "MetricsLogger",
    "NotInitializedError",
    "ReplayMemory",
    "RunDir",
    "SolverConfig",
    "StateObservation",
    "Successor",
    "TERMINAL",
    "Terminal",
    "Transition",
    "advance_history",
    "initial_history",
    "linear_schedule",
    "load_eqx",
    "make",
    "make_observation",
    "make_rng",
    "save_eqx",
    "setup_logging",
    "split_key",
]
