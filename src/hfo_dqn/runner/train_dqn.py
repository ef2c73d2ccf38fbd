"""DQN training loop.

The agent keeps a mutable replay memory and host-side histories, so the
loop is plain Python with jitted environment calls:

- **Outer loop**: Python ``for`` over environment steps.  Builds input
  histories, records transitions, calls ``agent.update()``, evaluates and
  logs.
- **Inner calls**: ``env.reset`` / ``env.step`` are jitted once; the
  agent's forward and training step are jitted inside the approximator.

Usage::

    from hfo_dqn.dqn import DQNConfig
    from hfo_dqn.env import make
    from hfo_dqn.runner import RunnerConfig, train_dqn

    env, env_params = make("PenaltyKick-v0")
    result = train_dqn(
        env, env_params,
        dqn_config=DQNConfig(),
        runner_config=RunnerConfig(total_timesteps=50_000),
    )
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import Any, NamedTuple

import jax.numpy as jnp

from hfo_dqn.dqn.agent import DQNAgent
from hfo_dqn.dqn.config import DQNConfig
from hfo_dqn.dqn.update import UpdateMetrics
from hfo_dqn.env.base import EnvParams, Environment
from hfo_dqn.errors import ConfigError
from hfo_dqn.metrics import (
    MetricsLogger,
    eval_record,
    log_evaluation,
    log_training_progress,
    training_record,
)
from hfo_dqn.run_dir import RunDir
from hfo_dqn.runner.config import RunnerConfig
from hfo_dqn.runner.evaluator import env_reset, env_step, evaluate
from hfo_dqn.schedule import linear_schedule
from hfo_dqn.seeding import make_rng, split_key
from hfo_dqn.types import (
    TERMINAL,
    Successor,
    SuccessorState,
    Transition,
    advance_history,
    initial_history,
    make_observation,
)

logger = logging.getLogger(__name__)


class DQNTrainResult(NamedTuple):
    """Return value from ``train_dqn``."""

    agent: DQNAgent
    episode_returns: list[float]
    metrics_log: list[dict[str, Any]]
    eval_log: list[dict[str, Any]]


def _check_env(env: Environment, env_params: EnvParams, config: DQNConfig) -> None:
    obs_shape = env.observation_space(env_params).shape
    if obs_shape != (config.state_size,):
        raise ConfigError(
            f"{env.name} observations have shape {obs_shape}, "
            f"but state_size is {config.state_size}"
        )
    n_env_actions = env.action_space(env_params).n
    if any(a >= n_env_actions for a in config.legal_actions):
        raise ConfigError(
            f"legal_actions {config.legal_actions} exceed the {n_env_actions} actions of {env.name}"
        )


def _check_resume(runner_config: RunnerConfig, run_dir: RunDir | None) -> None:
    if not runner_config.resume:
        return
    if run_dir is None:
        raise ConfigError("resume=True needs a run directory to restore from")
    if runner_config.solver_path is not None:
        raise ConfigError("set either resume or solver_path, not both")


def train_dqn(
    env: Environment,
    env_params: EnvParams,
    *,
    dqn_config: DQNConfig,
    runner_config: RunnerConfig,
    run_dir: RunDir | None = None,
    callback: Callable[[int, DQNAgent, dict[str, Any]], None] | None = None,
) -> DQNTrainResult:
    """Train a ``DQNAgent`` on *env*.

    Only true termination is recorded as a terminal transition; an
    episode cut off by the environment's step limit keeps its successor
    so the update still bootstraps from it.

    With ``runner_config.resume`` set, the newest ``*.solverstate`` in
    ``run_dir`` restores parameters, optimizer state and iteration before
    training starts.  An empty run directory starts fresh.  The replay
    memory is not saved, so warmup runs again after a resume.

    Args:
        env: Pure-JAX environment.
        env_params: Environment parameters.
        dqn_config: Agent hyperparameters.
        runner_config: Outer-loop settings.
        run_dir: When given, snapshots go to ``run_dir.snapshots``, metrics
            to ``run_dir.log_path()``, and a final snapshot is written.
        callback: Optional ``callback(step, agent, record)`` called for
            every training record.

    Returns:
        ``DQNTrainResult`` with the trained agent, episode returns, and
        the training and evaluation records.
    """
    _check_env(env, env_params, dqn_config)
    _check_resume(runner_config, run_dir)

    if run_dir is not None:
        solver = dataclasses.replace(
            dqn_config.solver, snapshot_prefix=str(run_dir.snapshot_prefix()),
        )
        dqn_config = dataclasses.replace(dqn_config, solver=solver)
        run_dir.save_config({"env": env.name, "dqn": dqn_config, "runner": runner_config})

    agent = DQNAgent(dqn_config)
    agent.initialize()
    if runner_config.model_path is not None:
        agent.load_trained_model(runner_config.model_path)
    if runner_config.solver_path is not None:
        agent.restore_solver(runner_config.solver_path)
    if runner_config.resume:
        latest = run_dir.latest_solver_state
        if latest is None:
            logger.info("No solver state in %s, starting fresh", run_dir.snapshots)
        else:
            agent.restore_solver(latest)
            logger.info("Resumed from %s at iteration %d", latest.name, agent.current_iteration())

    epsilon_fn = linear_schedule(
        runner_config.epsilon_start,
        runner_config.epsilon_end,
        runner_config.epsilon_decay_steps,
    )
    warmup = max(runner_config.warmup_steps, dqn_config.minibatch_size)
    input_count = dqn_config.input_count

    rng = make_rng(runner_config.seed)
    rng, reset_key = split_key(rng)
    obs, env_state = env_reset(env, reset_key, env_params)
    history = initial_history(make_observation(obs), input_count)

    metrics_logger = MetricsLogger(run_dir.log_path()) if run_dir is not None else None
    episode_returns: list[float] = []
    metrics_log: list[dict[str, Any]] = []
    eval_log: list[dict[str, Any]] = []
    last_update: UpdateMetrics | None = None
    ep_return = 0.0

    logger.info(
        "Training on %s for %d steps (warmup %d)",
        env.name, runner_config.total_timesteps, warmup,
    )

    try:
        for step in range(1, runner_config.total_timesteps + 1):
            epsilon = epsilon_fn(agent.current_iteration())
            action = agent.select_action(history, epsilon)

            rng, step_key = split_key(rng)
            next_obs, env_state, reward, done, info = env_step(
                env, step_key, env_state, jnp.int32(action), env_params,
            )
            reward = float(reward)
            ep_return += reward

            successor: SuccessorState
            if bool(info["terminated"]):
                successor = TERMINAL
            else:
                successor = Successor(advance_history(history, make_observation(next_obs)))
            agent.add_transition(Transition(history, action, reward, successor))

            if bool(done):
                episode_returns.append(ep_return)
                ep_return = 0.0
                rng, reset_key = split_key(rng)
                obs, env_state = env_reset(env, reset_key, env_params)
                history = initial_history(make_observation(obs), input_count)
            else:
                history = successor.history

            if agent.memory_size() >= warmup and step % runner_config.update_every == 0:
                last_update = agent.update()

            if last_update is not None and step % runner_config.log_interval == 0:
                record = training_record(
                    step, agent.current_iteration(), last_update,
                    epsilon=epsilon, episode_returns=episode_returns,
                )
                metrics_log.append(record)
                if metrics_logger is not None:
                    metrics_logger.write(record)
                log_training_progress(step, runner_config.total_timesteps, record)
                if callback is not None:
                    callback(step, agent, record)

            if runner_config.eval_every > 0 and step % runner_config.eval_every == 0:
                rng, eval_key = split_key(rng)
                eval_metrics = evaluate(
                    agent, env, env_params,
                    n_episodes=runner_config.eval_episodes,
                    max_steps=runner_config.max_episode_steps,
                    epsilon=runner_config.eval_epsilon,
                    rng=eval_key,
                )
                record = eval_record(step, eval_metrics)
                eval_log.append(record)
                if metrics_logger is not None:
                    metrics_logger.write(record)
                log_evaluation(step, eval_metrics)
    finally:
        if metrics_logger is not None:
            metrics_logger.close()

    if run_dir is not None:
        agent.snapshot()

    logger.info(
        "Finished: %d episodes, %d solver iterations",
        len(episode_returns), agent.current_iteration(),
    )
    return DQNTrainResult(
        agent=agent,
        episode_returns=episode_returns,
        metrics_log=metrics_log,
        eval_log=eval_log,
    )
