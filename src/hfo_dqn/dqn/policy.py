"""Epsilon-greedy action selection over a value approximator."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import jax
import numpy as np

from hfo_dqn.dqn.approximator import ValueApproximator
from hfo_dqn.dqn.batching import batched_forward
from hfo_dqn.types import InputHistory, flatten_history

logger = logging.getLogger(__name__)


def check_epsilon(epsilon: float) -> None:
    if not 0.0 <= epsilon <= 1.0:
        raise ValueError(f"epsilon must lie in [0, 1], got {epsilon}")


class EpsilonGreedyPolicy:
    """Acts uniformly at random with probability ``epsilon``, greedily otherwise.

    Column ``i`` of the approximator output scores ``legal_actions[i]``.
    Greedy ties go to the lowest column.
    """

    def __init__(self, approximator: ValueApproximator, legal_actions: Sequence[int]) -> None:
        if approximator.n_outputs != len(legal_actions):
            raise ValueError(
                f"approximator has {approximator.n_outputs} outputs for "
                f"{len(legal_actions)} legal actions"
            )
        self.approximator = approximator
        self.legal_actions = tuple(legal_actions)

    def q_values(self, histories: Sequence[InputHistory]) -> np.ndarray:
        """Q-values of each history, shape ``(len(histories), n_actions)``."""
        if not histories:
            return np.zeros((0, len(self.legal_actions)), dtype=np.float32)
        inputs = np.stack([flatten_history(h) for h in histories])
        return batched_forward(self.approximator, inputs)

    def greedy(self, histories: Sequence[InputHistory]) -> list[tuple[int, float]]:
        """Best ``(action, value)`` pair for each history."""
        q = self.q_values(histories)
        columns = np.argmax(q, axis=1)
        return [(self.legal_actions[c], float(q[i, c])) for i, c in enumerate(columns)]

    def select_action(self, history: InputHistory, epsilon: float, key: jax.Array) -> int:
        return self.select_actions([history], epsilon, key)[0]

    def select_actions(
        self,
        histories: Sequence[InputHistory],
        epsilon: float,
        key: jax.Array,
    ) -> list[int]:
        """Select one action per history with independent draws per item.

        All greedy members share a single (chunked) forward pass; when
        every member explores, the approximator is not called at all.
        """
        check_epsilon(epsilon)
        n = len(histories)
        if n == 0:
            return []

        coin_key, action_key = jax.random.split(key)
        explore = np.asarray(jax.random.uniform(coin_key, (n,))) < epsilon
        random_columns = np.asarray(
            jax.random.randint(action_key, (n,), 0, len(self.legal_actions))
        )
        actions = [self.legal_actions[c] for c in random_columns]

        greedy_idx = np.flatnonzero(~explore)
        if greedy_idx.size:
            best = self.greedy([histories[i] for i in greedy_idx])
            for i, (action, _) in zip(greedy_idx, best):
                actions[i] = action
        logger.debug("Selected %d actions, %d greedy", n, greedy_idx.size)
        return actions
