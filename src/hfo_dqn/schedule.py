"""Exploration schedules.

The training loop anneals epsilon as a function of the solver
iteration::

    from hfo_dqn.schedule import linear_schedule

    epsilon = linear_schedule(start=1.0, end=0.1, steps=1_000_000)
    eps = epsilon(agent.current_iteration())
"""

from __future__ import annotations

from collections.abc import Callable

Schedule = Callable[[int], float]


def linear_schedule(start: float, end: float, steps: int) -> Schedule:
    """Return ``step -> value`` interpolating from *start* to *end*.

    Steps outside ``[0, steps]`` are clamped to the endpoints.
    """
    span = float(max(steps, 1))

    def _schedule(step: int) -> float:
        frac = min(max(step / span, 0.0), 1.0)
        return start + frac * (end - start)

    return _schedule

