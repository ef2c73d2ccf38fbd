"""Core experience types for hfo_dqn.

Observations are read-only numpy vectors created once per environment
step.  Histories are tuples of observations, so overlapping windows at
consecutive timesteps hold the *same* observation objects rather than
copies::

    h0 = initial_history(obs0, input_count=2)   # (obs0, obs0)
    h1 = advance_history(h0, obs1)              # (obs0, obs1)
    h2 = advance_history(h1, obs2)              # (obs1, obs2)
    assert h2[0] is h1[1]

A transition's successor is either ``TERMINAL`` or ``Successor(history)``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import NamedTuple, TypeAlias

import numpy as np

# ---------------------------------------------------------------------------
# Sizes of the HFO offense task
# ---------------------------------------------------------------------------
STATE_DATA_SIZE = 58
INPUT_COUNT = 2
MINIBATCH_SIZE = 32
OUTPUT_COUNT = 5

StateObservation: TypeAlias = np.ndarray  # float32, (state_size,), read-only
InputHistory: TypeAlias = tuple[StateObservation, ...]


def make_observation(values: Sequence[float] | np.ndarray) -> StateObservation:
    """Copy *values* into a read-only float32 vector."""
    obs = np.array(values, dtype=np.float32).reshape(-1)
    obs.setflags(write=False)
    return obs


def initial_history(obs: StateObservation, input_count: int = INPUT_COUNT) -> InputHistory:
    """Window for the first step of an episode: *obs* repeated."""
    return (obs,) * input_count


def advance_history(history: InputHistory, obs: StateObservation) -> InputHistory:
    """Slide the window forward by one observation."""
    return (*history[1:], obs)


def flatten_history(history: InputHistory) -> np.ndarray:
    """Concatenate a window, oldest first, into one network input row."""
    return np.concatenate(history).astype(np.float32, copy=False)


# ---------------------------------------------------------------------------
# Successor variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Terminal:
    """The episode ended; no bootstrap term applies."""

    def __repr__(self) -> str:
        return "TERMINAL"


@dataclass(frozen=True, eq=False)
class Successor:
    """The window observed after the transition."""

    history: InputHistory


TERMINAL = Terminal()

SuccessorState: TypeAlias = Terminal | Successor


class Transition(NamedTuple):
    """One recorded step of experience.

    Fields:
        history:   Window the action was chosen from.
        action:    Action value, one of the agent's ``legal_actions``.
        reward:    Immediate reward.
        successor: ``TERMINAL`` or ``Successor(next_history)``.
    """

    history: InputHistory
    action: int
    reward: float
    successor: SuccessorState

    @property
    def terminal(self) -> bool:
        return isinstance(self.successor, Terminal)
