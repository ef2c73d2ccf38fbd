"""Tests for hfo_dqn.dqn.update."""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from hfo_dqn.dataprotocol.replay_memory import ReplayMemory
from hfo_dqn.dqn.approximator import TrainableApproximator, ValueApproximator
from hfo_dqn.dqn.batching import batched_forward
from hfo_dqn.dqn.config import SolverConfig
from hfo_dqn.dqn.update import UpdateEngine, build_minibatch, compute_td_targets
from hfo_dqn.errors import InsufficientMemoryError
from hfo_dqn.types import TERMINAL, Successor, Transition, flatten_history

STATE = 4
INPUTS = 2
WIDTH = 4


def _target(seed: int = 1, n_outputs: int = 3) -> ValueApproximator:
    return ValueApproximator.create(jax.random.PRNGKey(seed), STATE * INPUTS, n_outputs, WIDTH, (16,))


def _max_q(approx: ValueApproximator, history) -> float:
    q = batched_forward(approx, flatten_history(history)[None, :])
    return float(q.max())


def _params(approx: ValueApproximator) -> list[np.ndarray]:
    return [np.array(p) for p in approx.parameters()]


def _same(a: list[np.ndarray], b: list[np.ndarray]) -> bool:
    return all(np.array_equal(x, y) for x, y in zip(a, b))


class TestComputeTdTargets:
    def test_terminal_equals_reward_exactly(self) -> None:
        rewards = np.array([0.3, -1.7, 5.0])
        out = compute_td_targets(rewards, np.array([1e6, -3.2, 7.0]), np.ones(3, dtype=bool), 0.99)
        assert out.tolist() == [0.3, -1.7, 5.0]

    @pytest.mark.parametrize("gamma", [0.0, 0.5, 0.9, 1.0])
    def test_terminal_independent_of_gamma(self, gamma: float) -> None:
        out = compute_td_targets(np.array([2.5]), np.array([100.0]), np.array([True]), gamma)
        assert out[0] == 2.5

    def test_non_terminal_formula(self) -> None:
        out = compute_td_targets(np.array([1.0, -0.5]), np.array([2.0, 4.0]), np.zeros(2, bool), 0.9)
        np.testing.assert_allclose(out, [1.0 + 0.9 * 2.0, -0.5 + 0.9 * 4.0])

    def test_no_reward_clipping(self) -> None:
        out = compute_td_targets(np.array([250.0]), np.array([0.0]), np.array([False]), 0.9)
        assert out[0] == 250.0


class TestBuildMinibatch:
    def _batch(self, make_history) -> list[Transition]:
        return [
            Transition(make_history(0), 5, 1.0, Successor(make_history(1))),
            Transition(make_history(2), 2, 5.0, TERMINAL),
            Transition(make_history(3), 9, -0.5, Successor(make_history(4))),
            Transition(make_history(5), 5, 0.0, Successor(make_history(6))),
        ]

    def test_targets_and_mask(self, make_history) -> None:
        target = _target()
        batch = self._batch(make_history)
        columns = {2: 0, 5: 1, 9: 2}
        mb = build_minibatch(batch, target, 0.9, columns)

        assert mb.inputs.shape == (4, STATE * INPUTS)
        np.testing.assert_array_equal(mb.inputs[0], flatten_history(batch[0].history))

        expected_td = [
            1.0 + 0.9 * _max_q(target, make_history(1)),
            5.0,
            -0.5 + 0.9 * _max_q(target, make_history(4)),
            0.0 + 0.9 * _max_q(target, make_history(6)),
        ]
        np.testing.assert_allclose(mb.td_targets, expected_td, rtol=1e-5, atol=1e-6)
        assert mb.td_targets[1] == 5.0

        expected_cols = [1, 0, 2, 1]
        for row, col in enumerate(expected_cols):
            assert mb.mask[row, col] == 1.0
            assert mb.targets[row, col] == np.float32(mb.td_targets[row])

    def test_mask_is_one_hot(self, make_history) -> None:
        mb = build_minibatch(self._batch(make_history), _target(), 0.9, {2: 0, 5: 1, 9: 2})
        assert np.all(np.count_nonzero(mb.mask, axis=1) == 1)
        assert np.all(mb.mask.sum(axis=1) == 1.0)
        # off-action target columns are zero
        np.testing.assert_array_equal(mb.targets * (1.0 - mb.mask), 0.0)

    def test_all_terminal_batch_skips_target_forward(self, make_history) -> None:
        class _NoForward(ValueApproximator):
            def forward(self, inputs):
                raise AssertionError("no successor should be evaluated")

        target = _target()
        batch = [Transition(make_history(i), 0, float(i), TERMINAL) for i in range(4)]
        mb = build_minibatch(batch, _NoForward(target.model, WIDTH), 0.5, {0: 0, 1: 1, 2: 2})
        assert mb.td_targets.tolist() == [0.0, 1.0, 2.0, 3.0]


class TestUpdateEngine:
    def _engine(self, solver_config: SolverConfig, capacity: int = 10, clone_frequency: int = 2):
        primary = TrainableApproximator.create(
            jax.random.PRNGKey(0), STATE * INPUTS, 3, WIDTH, solver_config,
        )
        target = _target(seed=0)
        target.clone_parameters_from(primary)
        memory = ReplayMemory(capacity)
        engine = UpdateEngine(
            memory, primary, target,
            legal_actions=(0, 1, 2), gamma=0.9,
            clone_frequency=clone_frequency, minibatch_size=WIDTH,
        )
        return engine, memory

    def test_insufficient_memory(self, solver_config: SolverConfig, make_history) -> None:
        engine, memory = self._engine(solver_config)
        for i in range(WIDTH - 1):
            memory.add(Transition(make_history(i), 0, 1.0, TERMINAL))
        with pytest.raises(InsufficientMemoryError):
            engine.update(jax.random.PRNGKey(0))
        assert engine.primary.iteration == 0

    def test_uses_target_network_for_successors(self, solver_config: SolverConfig, make_history) -> None:
        engine, memory = self._engine(solver_config, clone_frequency=100)
        # make the target differ from the primary
        engine.target.clone_parameters_from(_target(seed=42))
        successor = make_history(9)
        for _ in range(WIDTH):
            memory.add(Transition(make_history(8), 1, 0.5, Successor(successor)))

        expected = 0.5 + 0.9 * _max_q(engine.target, successor)
        via_primary = 0.5 + 0.9 * _max_q(engine.primary, successor)
        assert expected != pytest.approx(via_primary, abs=1e-6)

        metrics = engine.update(jax.random.PRNGKey(0))
        assert metrics.td_target_mean == pytest.approx(expected, rel=1e-5)

    def test_clone_cadence(self, solver_config: SolverConfig, make_history) -> None:
        clone_frequency = 3
        engine, memory = self._engine(solver_config, clone_frequency=clone_frequency)
        for i in range(8):
            memory.add(Transition(make_history(i), i % 3, float(i), Successor(make_history(i + 1))))

        initial = _params(engine.target)
        after: list[list[np.ndarray]] = []
        for n in range(1, 8):
            metrics = engine.update(jax.random.PRNGKey(n))
            after.append(_params(engine.primary))
            assert metrics.cloned == (n % clone_frequency == 0)
            last_clone = (n // clone_frequency) * clone_frequency
            expected = initial if last_clone == 0 else after[last_clone - 1]
            assert _same(_params(engine.target), expected)

    def test_metrics_are_python_floats(self, solver_config: SolverConfig, make_history) -> None:
        engine, memory = self._engine(solver_config)
        for i in range(WIDTH):
            memory.add(Transition(make_history(i), 0, 1.0, TERMINAL))
        metrics = engine.update(jax.random.PRNGKey(0))
        assert isinstance(metrics.loss, float)
        assert metrics.td_target_mean == pytest.approx(1.0)
        assert jnp.isfinite(metrics.q_mean)
