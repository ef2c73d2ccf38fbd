"""Tests for hfo_dqn.dqn.batching."""

from __future__ import annotations

import jax
import numpy as np
import pytest

from hfo_dqn.dqn.approximator import ValueApproximator
from hfo_dqn.dqn.batching import batched_forward, pad_to_width

WIDTH = 4


@pytest.fixture
def approx() -> ValueApproximator:
    return ValueApproximator.create(jax.random.PRNGKey(0), 6, 3, WIDTH, (8,))


class _CountingApproximator(ValueApproximator):
    def __init__(self, inner: ValueApproximator) -> None:
        super().__init__(inner.model, inner.batch_width)
        self.calls: list[tuple[int, ...]] = []

    def forward(self, inputs):
        self.calls.append(tuple(np.shape(inputs)))
        return super().forward(inputs)


class TestPadToWidth:
    def test_pads_with_zero_rows(self) -> None:
        x = np.ones((2, 3), dtype=np.float32)
        padded = pad_to_width(x, 4)
        assert padded.shape == (4, 3)
        np.testing.assert_array_equal(padded[:2], x)
        np.testing.assert_array_equal(padded[2:], 0.0)

    def test_exact_width_unchanged(self) -> None:
        x = np.ones((4, 3), dtype=np.float32)
        assert pad_to_width(x, 4) is x

    def test_too_many_rows(self) -> None:
        with pytest.raises(ValueError):
            pad_to_width(np.ones((5, 3)), 4)


class TestBatchedForward:
    @pytest.mark.parametrize("n", [1, 3, 4, 5, 9])
    def test_output_rows_match_input_rows(self, approx: ValueApproximator, n: int) -> None:
        inputs = np.random.default_rng(n).normal(size=(n, 6)).astype(np.float32)
        out = batched_forward(approx, inputs)
        assert out.shape == (n, 3)

    def test_rows_independent_of_batch_position(self, approx: ValueApproximator) -> None:
        inputs = np.random.default_rng(0).normal(size=(9, 6)).astype(np.float32)
        together = batched_forward(approx, inputs)
        for i in range(9):
            alone = batched_forward(approx, inputs[i : i + 1])
            np.testing.assert_allclose(together[i], alone[0], rtol=1e-5, atol=1e-6)

    def test_chunk_count(self, approx: ValueApproximator) -> None:
        counting = _CountingApproximator(approx)
        batched_forward(counting, np.zeros((9, 6), dtype=np.float32))
        assert counting.calls == [(WIDTH, 6)] * 3

    def test_empty_input_skips_forward(self, approx: ValueApproximator) -> None:
        counting = _CountingApproximator(approx)
        out = batched_forward(counting, np.zeros((0, 6), dtype=np.float32))
        assert out.shape == (0, 3)
        assert counting.calls == []

    def test_wrong_feature_size(self, approx: ValueApproximator) -> None:
        with pytest.raises(ValueError):
            batched_forward(approx, np.zeros((2, 5), dtype=np.float32))
