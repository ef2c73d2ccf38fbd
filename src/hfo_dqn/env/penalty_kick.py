"""Pure-JAX one-on-one penalty kick task.

A small stand-in for Half Field Offense: one attacker starts with the
ball somewhere in front of the goal, one goalie guards the goal line
and tracks the ball laterally.  The attacker either dribbles or shoots.

Coordinates: ``x`` runs from the attacker's start region (0) to the
goal line (1); ``y`` runs across the pitch in ``[-1, 1]`` with the goal
mouth at ``|y| <= goal_half_width``.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp

from hfo_dqn.env.base import Environment, EnvParams, EnvState
from hfo_dqn.env.spaces import Box, Discrete

DRIBBLE_FORWARD = 0
DRIBBLE_UP = 1
DRIBBLE_DOWN = 2
SHOOT = 3
NO_OP = 4

ACTION_NAMES = ("DRIBBLE_FORWARD", "DRIBBLE_UP", "DRIBBLE_DOWN", "SHOOT", "NO_OP")

# 6 raw features plus sin/cos of k*pi*x and k*pi*y for k = 1..13
_N_BASE_FEATURES = 6
_FOURIER_ORDER = 13
_FREQUENCIES = jnp.arange(1, _FOURIER_ORDER + 1, dtype=jnp.float32) * jnp.pi

OBS_SIZE = _N_BASE_FEATURES + 4 * _FOURIER_ORDER


class PenaltyKickState(EnvState):
    ball_x: jax.Array
    ball_y: jax.Array
    goalie_y: jax.Array


class PenaltyKickParams(EnvParams):
    max_steps: int = eqx.field(static=True, default=100)
    dribble_speed: float = eqx.field(static=True, default=0.05)
    dribble_noise: float = eqx.field(static=True, default=0.01)
    goalie_x: float = eqx.field(static=True, default=0.95)
    goalie_speed: float = eqx.field(static=True, default=0.03)
    goalie_reach: float = eqx.field(static=True, default=0.3)
    goal_half_width: float = eqx.field(static=True, default=0.4)
    shot_range: float = eqx.field(static=True, default=0.3)
    capture_radius: float = eqx.field(static=True, default=0.08)
    goal_reward: float = eqx.field(static=True, default=1.0)


def goal_probability(
    ball_x: jax.Array,
    ball_y: jax.Array,
    goalie_y: jax.Array,
    params: PenaltyKickParams,
) -> jax.Array:
    """Chance that a shot from ``(ball_x, ball_y)`` beats the goalie."""
    distance = 1.0 - ball_x
    in_frame = jnp.abs(ball_y) <= params.goal_half_width
    opening = jnp.clip(jnp.abs(ball_y - goalie_y) / params.goalie_reach, 0.0, 1.0)
    p = jnp.exp(-distance / params.shot_range) * (0.25 + 0.75 * opening)
    return jnp.where(in_frame, p, 0.0)


class PenaltyKick(Environment):
    """Score against a tracking goalie.

    Observation: 58 features, ``[x, y, goalie_y, 1 - x, (y - goalie_y) / 2,
    t / max_steps]`` followed by their Fourier expansion in ``x`` and ``y``.
    Actions: ``0`` dribble forward, ``1`` dribble up, ``2`` dribble down,
    ``3`` shoot, ``4`` no-op.
    Reward: ``goal_reward`` when a shot scores, ``0`` otherwise.
    Shooting always ends the episode; so does the goalie reaching the ball.
    """

    def default_params(self) -> PenaltyKickParams:
        return PenaltyKickParams()

    def reset(
        self,
        key: jax.Array,
        params: PenaltyKickParams,
    ) -> tuple[jax.Array, PenaltyKickState]:
        kx, ky = jax.random.split(key)
        state = PenaltyKickState(
            ball_x=jax.random.uniform(kx, minval=0.2, maxval=0.5),
            ball_y=jax.random.uniform(ky, minval=-0.5, maxval=0.5),
            goalie_y=jnp.float32(0.0),
            time=jnp.int32(0),
        )
        return self._get_obs(state, params), state

    def step(
        self,
        key: jax.Array,
        state: PenaltyKickState,
        action: jax.Array,
        params: PenaltyKickParams,
    ) -> tuple[jax.Array, PenaltyKickState, jax.Array, jax.Array, dict[str, Any]]:
        noise_key, shot_key = jax.random.split(key)

        moving = action <= DRIBBLE_DOWN
        noise = jnp.where(moving, params.dribble_noise * jax.random.normal(noise_key, (2,)), 0.0)
        dx = jnp.where(action == DRIBBLE_FORWARD, params.dribble_speed, 0.0)
        dy = jnp.where(
            action == DRIBBLE_UP,
            params.dribble_speed,
            jnp.where(action == DRIBBLE_DOWN, -params.dribble_speed, 0.0),
        )
        ball_x = jnp.clip(state.ball_x + dx + noise[0], 0.0, params.goalie_x)
        ball_y = jnp.clip(state.ball_y + dy + noise[1], -1.0, 1.0)
        goalie_y = state.goalie_y + jnp.clip(
            ball_y - state.goalie_y, -params.goalie_speed, params.goalie_speed
        )
        time = state.time + 1

        shoot = action == SHOOT
        p_goal = goal_probability(state.ball_x, state.ball_y, state.goalie_y, params)
        scored = shoot & (jax.random.uniform(shot_key) < p_goal)
        captured = (
            ~shoot
            & (ball_x >= params.goalie_x - params.capture_radius)
            & (jnp.abs(ball_y - goalie_y) < params.capture_radius)
        )

        terminated = shoot | captured
        truncated = ~terminated & (time >= params.max_steps)
        done = terminated | truncated
        reward = jnp.where(scored, params.goal_reward, 0.0).astype(jnp.float32)

        new_state = PenaltyKickState(
            ball_x=ball_x.astype(jnp.float32),
            ball_y=ball_y.astype(jnp.float32),
            goalie_y=goalie_y.astype(jnp.float32),
            time=time,
        )
        info = {"terminated": terminated, "truncated": truncated, "goal": scored}
        return self._get_obs(new_state, params), new_state, reward, done, info

    def observation_space(self, params: PenaltyKickParams) -> Box:
        return Box(low=-1.0, high=1.0, shape=(OBS_SIZE,))

    def action_space(self, params: PenaltyKickParams) -> Discrete:
        return Discrete(n=len(ACTION_NAMES))

    @staticmethod
    def _get_obs(state: PenaltyKickState, params: PenaltyKickParams) -> jax.Array:
        x, y = state.ball_x, state.ball_y
        base = jnp.stack([
            x,
            y,
            state.goalie_y,
            1.0 - x,
            0.5 * (y - state.goalie_y),
            state.time / params.max_steps,
        ]).astype(jnp.float32)
        fx = _FREQUENCIES * x
        fy = _FREQUENCIES * y
        return jnp.concatenate([base, jnp.sin(fx), jnp.cos(fx), jnp.sin(fy), jnp.cos(fy)])
