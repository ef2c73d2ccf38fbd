"""Tests for hfo_dqn.schedule."""

from __future__ import annotations

import pytest

from hfo_dqn.schedule import linear_schedule


class TestLinearSchedule:
    def test_endpoints(self) -> None:
        sched = linear_schedule(start=1.0, end=0.1, steps=100)
        assert sched(0) == 1.0
        assert sched(100) == pytest.approx(0.1)

    def test_midpoint(self) -> None:
        sched = linear_schedule(start=1.0, end=0.0, steps=100)
        assert sched(50) == pytest.approx(0.5)

    def test_clamps_outside_range(self) -> None:
        sched = linear_schedule(start=1.0, end=0.1, steps=100)
        assert sched(10_000) == sched(100)
        assert sched(-5) == 1.0

    def test_increasing(self) -> None:
        sched = linear_schedule(start=0.0, end=1.0, steps=10)
        assert sched(5) == pytest.approx(0.5)

    def test_zero_steps(self) -> None:
        sched = linear_schedule(start=1.0, end=0.0, steps=0)
        assert sched(0) == 1.0
        assert sched(1) == 0.0

