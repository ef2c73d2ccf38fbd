"""Environment boundary.

Quick start::

    import jax
    from hfo_dqn.env import make

    env, params = make("PenaltyKick-v0")
    key = jax.random.PRNGKey(0)
    obs, state = env.reset(key, params)
    obs, state, reward, done, info = env.step(key, state, jnp.int32(3), params)
"""

from hfo_dqn.env.base import Environment, EnvParams, EnvState
from hfo_dqn.env.penalty_kick import (
    ACTION_NAMES,
    PenaltyKick,
    PenaltyKickParams,
    PenaltyKickState,
)
from hfo_dqn.env.spaces import Box, Discrete

_REGISTRY: dict[str, type[Environment]] = {
    "PenaltyKick-v0": PenaltyKick,
}


def register(name: str, cls: type[Environment]) -> None:
    """Register a custom environment class under *name*."""
    _REGISTRY[name] = cls


def make(name: str, **kwargs: object) -> tuple[Environment, EnvParams]:
    """Create an environment and its default params by name.

    Returns:
        ``(env, params)`` ready for ``env.reset(key, params)``.
    """
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown environment {name!r}. Available: {available}")
    env = _REGISTRY[name](**kwargs)
    return env, env.default_params()


__all__ = [
    "ACTION_NAMES",
    "Box",
    "Discrete",
    "EnvParams",
    "EnvState",
    "Environment",
    "PenaltyKick",
    "PenaltyKickParams",
    "PenaltyKickState",
    "make",
    "register",
]
