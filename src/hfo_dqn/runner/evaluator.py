"""Evaluation with side-by-side episodes.

All live episodes advance in lockstep; each step selects actions for
every live episode with a single ``DQNAgent.select_actions`` call, so
the greedy members share one (chunked) forward pass.

Usage::

    eval_metrics = evaluate(
        agent, env, env_params,
        n_episodes=10, max_steps=500, epsilon=0.0,
        rng=jax.random.PRNGKey(99),
    )
    # eval_metrics.mean_return, eval_metrics.std_return, eval_metrics.mean_length
"""

from __future__ import annotations

from functools import partial
from typing import Any, NamedTuple

import chex
import jax
import jax.numpy as jnp
import numpy as np

from hfo_dqn.dqn.agent import DQNAgent
from hfo_dqn.env.base import EnvParams, EnvState, Environment
from hfo_dqn.seeding import split_key
from hfo_dqn.types import advance_history, initial_history, make_observation


class EvalMetrics(NamedTuple):
    """Aggregated evaluation results."""

    mean_return: float
    std_return: float
    mean_length: float


@partial(jax.jit, static_argnames=("env",))
def env_reset(
    env: Environment,
    key: chex.PRNGKey,
    params: EnvParams,
) -> tuple[chex.Array, EnvState]:
    return env.reset(key, params)


@partial(jax.jit, static_argnames=("env",))
def env_step(
    env: Environment,
    key: chex.PRNGKey,
    state: EnvState,
    action: chex.Array,
    params: EnvParams,
) -> tuple[chex.Array, EnvState, chex.Array, chex.Array, dict[str, Any]]:
    return env.step(key, state, action, params)


def evaluate(
    agent: DQNAgent,
    env: Environment,
    env_params: EnvParams,
    *,
    n_episodes: int,
    max_steps: int,
    epsilon: float = 0.0,
    rng: chex.PRNGKey,
) -> EvalMetrics:
    """Run *n_episodes* episodes of at most *max_steps* steps each.

    Transitions are not recorded and no update is performed.

    Args:
        agent: Initialized agent.
        env: Pure-JAX environment.
        env_params: Environment parameters.
        n_episodes: Number of episodes run side by side.
        max_steps: Step limit per episode.
        epsilon: Exploration rate used while evaluating.
        rng: PRNG key for resets and environment dynamics.

    Returns:
        ``EvalMetrics`` with mean/std return and mean episode length.
    """
    if n_episodes <= 0:
        raise ValueError(f"n_episodes must be positive, got {n_episodes}")
    input_count = agent.config.input_count
    rng, *reset_keys = jax.random.split(rng, n_episodes + 1)

    histories = []
    env_states = []
    for key in reset_keys:
        obs, env_state = env_reset(env, key, env_params)
        histories.append(initial_history(make_observation(obs), input_count))
        env_states.append(env_state)

    returns = np.zeros(n_episodes, dtype=np.float64)
    lengths = np.zeros(n_episodes, dtype=np.int64)
    live = list(range(n_episodes))

    for _ in range(max_steps):
        if not live:
            break
        actions = agent.select_actions([histories[i] for i in live], epsilon)
        still_live = []
        for i, action in zip(live, actions):
            rng, step_key = split_key(rng)
            obs, env_states[i], reward, done, _info = env_step(
                env, step_key, env_states[i], jnp.int32(action), env_params,
            )
            returns[i] += float(reward)
            lengths[i] += 1
            if not bool(done):
                histories[i] = advance_history(histories[i], make_observation(obs))
                still_live.append(i)
        live = still_live

    return EvalMetrics(
        mean_return=float(np.mean(returns)),
        std_return=float(np.std(returns)),
        mean_length=float(np.mean(lengths)),
    )
