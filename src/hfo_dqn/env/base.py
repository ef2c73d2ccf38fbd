"""Functional environment interface.

Follows the Gymnax-style API: ``reset`` and ``step`` are pure functions
of an explicit key, state and params, so they can be jitted.  The agent
side is host-side Python; the runner converts observations to
``StateObservation`` vectors at this boundary.

Core pattern::

    env = PenaltyKick()
    params = env.default_params()
    key = jax.random.PRNGKey(0)

    obs, state = env.reset(key, params)
    obs, state, reward, done, info = env.step(key, state, action, params)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import equinox as eqx
import jax

from hfo_dqn.env.spaces import Box, Discrete


class EnvState(eqx.Module):
    """Base class for environment states.

    States are immutable pytrees; ``step`` returns a new one.
    """

    time: jax.Array  # current timestep within the episode


class EnvParams(eqx.Module):
    """Base class for environment parameters, kept apart from state."""


class Environment(ABC):
    """Abstract base for pure-JAX environments."""

    @abstractmethod
    def reset(
        self,
        key: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState]:
        """Reset the environment and return ``(obs, state)``."""
        ...

    @abstractmethod
    def step(
        self,
        key: jax.Array,
        state: EnvState,
        action: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState, jax.Array, jax.Array, dict[str, Any]]:
        """Advance one timestep.

        Returns:
            ``(obs, state, reward, done, info)``.  *done* merges
            ``info["terminated"]`` and ``info["truncated"]``; only a
            terminated episode ends without a successor state.
        """
        ...

    @abstractmethod
    def default_params(self) -> EnvParams:
        ...

    @abstractmethod
    def observation_space(self, params: EnvParams) -> Box:
        ...

    @abstractmethod
    def action_space(self, params: EnvParams) -> Discrete:
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__
