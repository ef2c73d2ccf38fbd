"""Train DQN on the penalty kick task, then evaluate the greedy policy."""

import jax

from hfo_dqn.dqn import DQNConfig, SolverConfig
from hfo_dqn.env import ACTION_NAMES, make
from hfo_dqn.metrics import setup_logging
from hfo_dqn.run_dir import RunDir
from hfo_dqn.runner import RunnerConfig, evaluate, train_dqn
from hfo_dqn.types import initial_history, make_observation


def main() -> None:
    setup_logging()
    env, env_params = make("PenaltyKick-v0")

    dqn_config = DQNConfig(
        replay_memory_capacity=50_000,
        gamma=0.99,
        clone_frequency=1_000,
        solver=SolverConfig(hidden_sizes=(128, 64), base_lr=5e-4),
    )
    runner_config = RunnerConfig(
        total_timesteps=30_000,
        warmup_steps=1_000,
        epsilon_decay_steps=15_000,
        eval_every=5_000,
        max_episode_steps=100,
    )
    run_dir = RunDir("penalty_kick_dqn", base_dir="runs")

    result = train_dqn(
        env, env_params,
        dqn_config=dqn_config,
        runner_config=runner_config,
        run_dir=run_dir,
    )

    metrics = evaluate(
        result.agent, env, env_params,
        n_episodes=50, max_steps=100, epsilon=0.0,
        rng=jax.random.PRNGKey(123),
    )
    print(f"Greedy return over 50 episodes: {metrics.mean_return:.3f}")

    obs, _ = env.reset(jax.random.PRNGKey(7), env_params)
    history = initial_history(make_observation(obs), dqn_config.input_count)
    ((action, value),) = result.agent.policy.greedy([history])
    print(f"Opening move: {ACTION_NAMES[action]} (Q={value:.3f})")


if __name__ == "__main__":
    main()
