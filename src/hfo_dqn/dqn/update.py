"""Minibatch target construction and the DQN training step.

For each sampled transition ``(history, action, reward, successor)``::

    td_target = reward                                   if successor is TERMINAL
    td_target = reward + gamma * max_a' Q_target(s', a') otherwise

The training batch holds, per row, the flattened history, a target row
that is zero except at the action's column (which holds ``td_target``)
and a one-hot mask at that same column.  Only the target network is
used to evaluate successors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import NamedTuple

import jax
import numpy as np

from hfo_dqn.dataprotocol.replay_memory import ReplayMemory
from hfo_dqn.dqn.approximator import TrainableApproximator, ValueApproximator
from hfo_dqn.dqn.batching import batched_forward
from hfo_dqn.errors import InsufficientMemoryError
from hfo_dqn.types import Successor, Transition, flatten_history

logger = logging.getLogger(__name__)


class MinibatchTargets(NamedTuple):
    """Arrays fed to ``TrainableApproximator.train_step``."""

    inputs: np.ndarray  # (batch, input_size)
    targets: np.ndarray  # (batch, n_actions), td_target at the action column
    mask: np.ndarray  # (batch, n_actions), one-hot at the action column
    td_targets: np.ndarray  # (batch,) float64


class UpdateMetrics(NamedTuple):
    loss: float
    q_mean: float
    td_target_mean: float
    cloned: bool


def compute_td_targets(
    rewards: np.ndarray,
    next_q_max: np.ndarray,
    terminal: np.ndarray,
    gamma: float,
) -> np.ndarray:
    """Bellman targets; terminal rows are exactly their reward."""
    rewards = np.asarray(rewards, dtype=np.float64)
    bootstrap = rewards + gamma * np.asarray(next_q_max, dtype=np.float64)
    return np.where(np.asarray(terminal, dtype=bool), rewards, bootstrap)


def build_minibatch(
    batch: Sequence[Transition],
    target: ValueApproximator,
    gamma: float,
    action_columns: Mapping[int, int],
) -> MinibatchTargets:
    """Turn sampled transitions into training arrays.

    Parameters
    ----------
    batch:
        Sampled transitions.
    target:
        Network that evaluates successor histories.
    gamma:
        Discount factor.
    action_columns:
        Maps each legal action value to its output column.
    """
    n = len(batch)
    inputs = np.stack([flatten_history(t.history) for t in batch])
    rewards = np.array([t.reward for t in batch], dtype=np.float64)
    terminal = np.array([t.terminal for t in batch], dtype=bool)

    next_q_max = np.zeros(n, dtype=np.float64)
    live = np.flatnonzero(~terminal)
    if live.size:
        successors = []
        for i in live:
            successor = batch[i].successor
            assert isinstance(successor, Successor)
            successors.append(flatten_history(successor.history))
        next_q = batched_forward(target, np.stack(successors))
        next_q_max[live] = next_q.max(axis=1)

    td_targets = compute_td_targets(rewards, next_q_max, terminal, gamma)

    columns = np.array([action_columns[t.action] for t in batch], dtype=np.int64)
    rows = np.arange(n)
    targets = np.zeros((n, target.n_outputs), dtype=np.float32)
    mask = np.zeros((n, target.n_outputs), dtype=np.float32)
    targets[rows, columns] = td_targets
    mask[rows, columns] = 1.0
    return MinibatchTargets(inputs=inputs, targets=targets, mask=mask, td_targets=td_targets)


class UpdateEngine:
    """Samples, builds targets, trains the primary and clones on cadence.

    The step counter is the primary's solver iteration, so a restored
    solver resumes the clone cadence where it left off.
    """

    def __init__(
        self,
        memory: ReplayMemory,
        primary: TrainableApproximator,
        target: ValueApproximator,
        *,
        legal_actions: Sequence[int],
        gamma: float,
        clone_frequency: int,
        minibatch_size: int,
    ) -> None:
        self.memory = memory
        self.primary = primary
        self.target = target
        self.gamma = gamma
        self.clone_frequency = clone_frequency
        self.minibatch_size = minibatch_size
        self.action_columns = {a: i for i, a in enumerate(legal_actions)}

    def clone(self) -> None:
        """Overwrite every target parameter with the primary's."""
        self.target.clone_parameters_from(self.primary)
        logger.info("Cloned primary network at iteration %d", self.primary.iteration)

    def update(self, key: jax.Array) -> UpdateMetrics:
        if len(self.memory) < self.minibatch_size:
            raise InsufficientMemoryError(
                f"update needs {self.minibatch_size} transitions, memory holds {len(self.memory)}"
            )
        batch = self.memory.sample(key, self.minibatch_size)
        minibatch = build_minibatch(batch, self.target, self.gamma, self.action_columns)
        step = self.primary.train_step(minibatch.inputs, minibatch.targets, minibatch.mask)

        cloned = self.primary.iteration % self.clone_frequency == 0
        if cloned:
            self.clone()

        metrics = UpdateMetrics(
            loss=float(step.loss),
            q_mean=float(step.q_mean),
            td_target_mean=float(minibatch.td_targets.mean()),
            cloned=cloned,
        )
        logger.debug(
            "iter=%d loss=%.5f q_mean=%.4f td_mean=%.4f",
            self.primary.iteration, metrics.loss, metrics.q_mean, metrics.td_target_mean,
        )
        return metrics
