"""DQN agent and solver hyperparameters."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from hfo_dqn.errors import ConfigError
from hfo_dqn.types import INPUT_COUNT, MINIBATCH_SIZE, OUTPUT_COUNT, STATE_DATA_SIZE

_OPTIMIZERS = ("adam", "rmsprop", "sgd")
_LR_POLICIES = ("fixed", "step", "exp", "inv")


@dataclass(frozen=True)
class SolverConfig:
    """Training configuration of the value approximator.

    Learning-rate policies follow Caffe's naming:

    - ``fixed``: ``base_lr``
    - ``step``:  ``base_lr * lr_gamma ** floor(iter / lr_stepsize)``
    - ``exp``:   ``base_lr * lr_gamma ** iter``
    - ``inv``:   ``base_lr * (1 + lr_gamma * iter) ** -lr_power``
    """

    # Network
    hidden_sizes: tuple[int, ...] = (256, 128)

    # Optimization
    optimizer: str = "adam"
    base_lr: float = 1e-4
    momentum: float = 0.95
    momentum2: float = 0.999
    clip_gradients: float | None = 10.0

    # Learning-rate schedule
    lr_policy: str = "fixed"
    lr_gamma: float = 0.1
    lr_stepsize: int = 100_000
    lr_power: float = 0.75

    # Snapshots (0 disables periodic snapshots)
    snapshot_interval: int = 0
    snapshot_prefix: str = "snapshots/dqn"

    def validate(self) -> None:
        if self.optimizer not in _OPTIMIZERS:
            raise ConfigError(f"optimizer must be one of {_OPTIMIZERS}, got {self.optimizer!r}")
        if self.lr_policy not in _LR_POLICIES:
            raise ConfigError(f"lr_policy must be one of {_LR_POLICIES}, got {self.lr_policy!r}")
        if not self.base_lr > 0:
            raise ConfigError(f"base_lr must be positive, got {self.base_lr}")
        if self.lr_policy == "step" and self.lr_stepsize <= 0:
            raise ConfigError(f"lr_stepsize must be positive, got {self.lr_stepsize}")
        if any(h <= 0 for h in self.hidden_sizes):
            raise ConfigError(f"hidden_sizes must be positive, got {self.hidden_sizes}")
        if self.clip_gradients is not None and not self.clip_gradients > 0:
            raise ConfigError(f"clip_gradients must be positive or None, got {self.clip_gradients}")
        if self.snapshot_interval < 0:
            raise ConfigError(f"snapshot_interval must be >= 0, got {self.snapshot_interval}")


@dataclass(frozen=True)
class DQNConfig:
    """Everything fixed for the lifetime of a ``DQNAgent``."""

    # Actions; the network has one output column per entry
    legal_actions: tuple[int, ...] = tuple(range(OUTPUT_COUNT))

    # Replay
    replay_memory_capacity: int = 500_000
    minibatch_size: int = MINIBATCH_SIZE

    # Bellman targets
    gamma: float = 0.99
    clone_frequency: int = 10_000

    # Input layout
    state_size: int = STATE_DATA_SIZE
    input_count: int = INPUT_COUNT

    # Seeding
    seed: int = 0

    solver: SolverConfig = field(default_factory=SolverConfig)

    @property
    def input_size(self) -> int:
        return self.state_size * self.input_count

    @property
    def n_outputs(self) -> int:
        return len(self.legal_actions)

    def validate(self) -> None:
        """Raise ``ConfigError`` on the first violated invariant."""
        if len(self.legal_actions) == 0:
            raise ConfigError("legal_actions must not be empty")
        if len(set(self.legal_actions)) != len(self.legal_actions):
            raise ConfigError(f"legal_actions must be distinct, got {self.legal_actions}")
        if any(a < 0 for a in self.legal_actions):
            raise ConfigError(f"legal_actions must be non-negative, got {self.legal_actions}")
        if self.replay_memory_capacity <= 0:
            raise ConfigError(
                f"replay_memory_capacity must be positive, got {self.replay_memory_capacity}"
            )
        if self.clone_frequency <= 0:
            raise ConfigError(f"clone_frequency must be positive, got {self.clone_frequency}")
        if not (math.isfinite(self.gamma) and 0.0 <= self.gamma <= 1.0):
            raise ConfigError(f"gamma must lie in [0, 1], got {self.gamma}")
        for name in ("minibatch_size", "state_size", "input_count"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        self.solver.validate()
