"""Deep Q-learning agent.

``DQNAgent`` owns the replay memory, the primary (trainable) network, the
target (read-only) network and the PRNG key every random draw is split
from.  It is stateful and single-threaded: each method runs to
completion and mutates the agent in place.

Usage::

    agent = DQNAgent(DQNConfig(legal_actions=(0, 1, 2)))
    agent.initialize()

    history = initial_history(make_observation(obs), agent.config.input_count)
    action = agent.select_action(history, epsilon=0.1)
    agent.add_transition(Transition(history, action, reward, TERMINAL))
    if agent.memory_size() >= agent.config.minibatch_size:
        metrics = agent.update()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import numpy as np

from hfo_dqn.dataprotocol.replay_memory import ReplayMemory
from hfo_dqn.dqn.approximator import TrainableApproximator, ValueApproximator
from hfo_dqn.dqn.config import DQNConfig
from hfo_dqn.dqn.policy import EpsilonGreedyPolicy
from hfo_dqn.dqn.update import UpdateEngine, UpdateMetrics
from hfo_dqn.errors import NotInitializedError
from hfo_dqn.seeding import make_rng, split_key
from hfo_dqn.types import InputHistory, Successor, Transition

logger = logging.getLogger(__name__)


class DQNAgent:
    """DQN with experience replay and a periodically cloned target network."""

    def __init__(self, config: DQNConfig | None = None) -> None:
        config = config if config is not None else DQNConfig()
        config.validate()
        self._config = config
        self._rng = make_rng(config.seed)
        self._memory: ReplayMemory | None = None
        self._primary: TrainableApproximator | None = None
        self._target: ValueApproximator | None = None
        self._policy: EpsilonGreedyPolicy | None = None
        self._engine: UpdateEngine | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Build both networks and an empty replay memory.

        The target network starts as an exact copy of the primary.
        """
        cfg = self._config
        self._rng, init_key = split_key(self._rng)
        self._primary = TrainableApproximator.create(
            init_key, cfg.input_size, cfg.n_outputs, cfg.minibatch_size, cfg.solver,
        )
        self._target = ValueApproximator.create(
            init_key, cfg.input_size, cfg.n_outputs, cfg.minibatch_size, cfg.solver.hidden_sizes,
        )
        self._target.clone_parameters_from(self._primary)
        self._memory = ReplayMemory(cfg.replay_memory_capacity)
        self._policy = EpsilonGreedyPolicy(self._primary, cfg.legal_actions)
        self._engine = UpdateEngine(
            self._memory,
            self._primary,
            self._target,
            legal_actions=cfg.legal_actions,
            gamma=cfg.gamma,
            clone_frequency=cfg.clone_frequency,
            minibatch_size=cfg.minibatch_size,
        )
        logger.info(
            "Initialized DQN agent: %d inputs, actions %s, replay capacity %d",
            cfg.input_size, list(cfg.legal_actions), cfg.replay_memory_capacity,
        )

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def _require_initialized(self) -> UpdateEngine:
        if self._engine is None:
            raise NotInitializedError("DQNAgent.initialize() must be called first")
        return self._engine

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_trained_model(self, path: str | Path) -> None:
        """Load primary parameters only, then re-clone the target."""
        engine = self._require_initialized()
        engine.primary.load_parameters(path)
        engine.clone()

    def restore_solver(self, path: str | Path) -> None:
        """Resume parameters, optimizer state and iteration, then re-clone."""
        engine = self._require_initialized()
        engine.primary.restore_full_state(path)
        engine.clone()

    def snapshot(self) -> tuple[Path, Path]:
        """Write primary parameters and solver state; see ``TrainableApproximator.snapshot``."""
        return self._require_initialized().primary.snapshot()

    # ------------------------------------------------------------------
    # Acting
    # ------------------------------------------------------------------

    def _check_history(self, history: InputHistory) -> None:
        cfg = self._config
        if len(history) != cfg.input_count:
            raise ValueError(
                f"history must hold {cfg.input_count} observations, got {len(history)}"
            )
        for obs in history:
            if np.shape(obs) != (cfg.state_size,):
                raise ValueError(
                    f"observations must have shape ({cfg.state_size},), got {np.shape(obs)}"
                )

    def select_action(self, history: InputHistory, epsilon: float) -> int:
        """Epsilon-greedy action for one history."""
        self._require_initialized()
        self._check_history(history)
        self._rng, key = split_key(self._rng)
        return self._policy.select_action(history, epsilon, key)

    def select_actions(self, histories: Sequence[InputHistory], epsilon: float) -> list[int]:
        """Epsilon-greedy actions for many histories with one forward pass."""
        self._require_initialized()
        for history in histories:
            self._check_history(history)
        self._rng, key = split_key(self._rng)
        return self._policy.select_actions(histories, epsilon, key)

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def add_transition(self, transition: Transition) -> None:
        engine = self._require_initialized()
        if transition.action not in engine.action_columns:
            raise ValueError(
                f"action {transition.action} is not in legal_actions {self._config.legal_actions}"
            )
        self._check_history(transition.history)
        if isinstance(transition.successor, Successor):
            self._check_history(transition.successor.history)
        self._memory.add(transition)

    def update(self) -> UpdateMetrics:
        """One minibatch training step; clones the target on cadence."""
        engine = self._require_initialized()
        self._rng, key = split_key(self._rng)
        return engine.update(key)

    def clear_replay_memory(self) -> None:
        self._require_initialized()
        self._memory.clear()
        logger.info("Cleared replay memory")

    def memory_size(self) -> int:
        self._require_initialized()
        return len(self._memory)

    def current_iteration(self) -> int:
        return self._require_initialized().primary.iteration

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> DQNConfig:
        return self._config

    @property
    def legal_actions(self) -> tuple[int, ...]:
        return self._config.legal_actions

    @property
    def primary(self) -> TrainableApproximator:
        return self._require_initialized().primary

    @property
    def target(self) -> ValueApproximator:
        return self._require_initialized().target

    @property
    def policy(self) -> EpsilonGreedyPolicy:
        self._require_initialized()
        return self._policy
