"""Tests for hfo_dqn.dqn.policy."""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np
import pytest

from hfo_dqn.dqn.approximator import ValueApproximator
from hfo_dqn.dqn.policy import EpsilonGreedyPolicy
from hfo_dqn.types import flatten_history

STATE = 4
INPUTS = 2
WIDTH = 4


def _approx(seed: int = 0, n_outputs: int = 3) -> ValueApproximator:
    return ValueApproximator.create(jax.random.PRNGKey(seed), STATE * INPUTS, n_outputs, WIDTH, (16,))


def _flat_approx(n_outputs: int = 3) -> ValueApproximator:
    """Every Q-value is exactly zero."""
    approx = _approx(n_outputs=n_outputs)
    last = approx.model.layers[-1]
    model = eqx.tree_at(
        lambda m: (m.layers[-1].weight, m.layers[-1].bias),
        approx.model,
        (jnp.zeros_like(last.weight), jnp.zeros_like(last.bias)),
    )
    return ValueApproximator(model, WIDTH)


class _NoForward(ValueApproximator):
    def forward(self, inputs):
        raise AssertionError("forward should not be called")


class TestGreedy:
    def test_argmax_of_forward(self, make_history) -> None:
        approx = _approx()
        policy = EpsilonGreedyPolicy(approx, (0, 1, 2))
        history = make_history(0)
        row = np.zeros((WIDTH, STATE * INPUTS), dtype=np.float32)
        row[0] = flatten_history(history)
        q = np.asarray(approx.forward(row))[0]
        ((action, value),) = policy.greedy([history])
        assert action == int(np.argmax(q))
        assert value == pytest.approx(float(q.max()), rel=1e-5)

    def test_ties_go_to_lowest_index(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_flat_approx(), (0, 1, 2))
        assert policy.greedy([make_history(1)]) == [(0, 0.0)]

    def test_maps_columns_to_action_values(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_flat_approx(), (7, 3, 9))
        ((action, _),) = policy.greedy([make_history(1)])
        assert action == 7

    def test_empty(self) -> None:
        assert EpsilonGreedyPolicy(_approx(), (0, 1, 2)).greedy([]) == []

    def test_output_count_must_match_actions(self) -> None:
        with pytest.raises(ValueError):
            EpsilonGreedyPolicy(_approx(n_outputs=3), (0, 1))


class TestSelectAction:
    def test_epsilon_zero_is_deterministic(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        history = make_history(3)
        expected = policy.greedy([history])[0][0]
        for i in range(10):
            assert policy.select_action(history, 0.0, jax.random.PRNGKey(i)) == expected

    def test_epsilon_one_is_uniform(self, make_history) -> None:
        legal = (0, 1, 2)
        policy = EpsilonGreedyPolicy(_NoForward(_approx().model, WIDTH), legal)
        history = make_history(4)
        n = 3000
        actions = policy.select_actions([history] * n, 1.0, jax.random.PRNGKey(0))
        counts = np.bincount(actions, minlength=3)
        expected = n / len(legal)
        # chi-square with 2 degrees of freedom; 13.8 is the 0.999 quantile
        chi2 = float(np.sum((counts - expected) ** 2 / expected))
        assert chi2 < 13.8

    def test_random_actions_come_from_legal_set(self, make_history) -> None:
        legal = (2, 5, 11)
        policy = EpsilonGreedyPolicy(_approx(), legal)
        actions = policy.select_actions([make_history(0)] * 200, 1.0, jax.random.PRNGKey(1))
        assert set(actions) == set(legal)

    @pytest.mark.parametrize("epsilon", [-0.1, 1.1])
    def test_epsilon_out_of_range(self, make_history, epsilon: float) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        with pytest.raises(ValueError):
            policy.select_action(make_history(0), epsilon, jax.random.PRNGKey(0))

    def test_same_key_same_actions(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        histories = [make_history(i) for i in range(6)]
        a = policy.select_actions(histories, 0.5, jax.random.PRNGKey(7))
        b = policy.select_actions(histories, 0.5, jax.random.PRNGKey(7))
        assert a == b


class TestSelectActions:
    @pytest.mark.parametrize("n", [1, 3, 4, 10])
    def test_batch_matches_single_at_epsilon_zero(self, make_history, n: int) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        histories = [make_history(i) for i in range(n)]
        batch = policy.select_actions(histories, 0.0, jax.random.PRNGKey(0))
        single = [policy.select_action(h, 0.0, jax.random.PRNGKey(i)) for i, h in enumerate(histories)]
        assert batch == single

    def test_result_length(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        histories = [make_history(i) for i in range(7)]
        assert len(policy.select_actions(histories, 0.3, jax.random.PRNGKey(0))) == 7

    def test_empty_batch(self) -> None:
        policy = EpsilonGreedyPolicy(_approx(), (0, 1, 2))
        assert policy.select_actions([], 0.5, jax.random.PRNGKey(0)) == []

    def test_draws_are_independent_per_item(self, make_history) -> None:
        policy = EpsilonGreedyPolicy(_NoForward(_approx().model, WIDTH), (0, 1, 2))
        actions = policy.select_actions([make_history(0)] * 50, 1.0, jax.random.PRNGKey(3))
        assert len(set(actions)) > 1
