#!/usr/bin/env python3
"""Train a DQN agent via CLI.

Usage::

    python scripts/train_dqn.py --help
    python scripts/train_dqn.py --env-id PenaltyKick-v0
    python scripts/train_dqn.py --dqn.gamma 0.95 --dqn.solver.base-lr 5e-4
    python scripts/train_dqn.py --runner.total-timesteps 200000 --runner.output-dir runs
    python scripts/train_dqn.py --runner.output-dir runs --runner.run-id kick --runner.resume
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tyro

from hfo_dqn.dqn.config import DQNConfig
from hfo_dqn.env import make
from hfo_dqn.metrics import setup_logging
from hfo_dqn.run_dir import RunDir
from hfo_dqn.runner import RunnerConfig, train_dqn


@dataclass(frozen=True)
class TrainDQNArgs:
    """DQN training configuration."""

    # Environment
    env_id: str = "PenaltyKick-v0"

    # Agent hyperparameters
    dqn: DQNConfig = DQNConfig()

    # Runner / outer-loop settings
    runner: RunnerConfig = RunnerConfig()

    # Console verbosity
    verbose: bool = False


def main(args: TrainDQNArgs) -> None:
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    env, env_params = make(args.env_id)

    run_dir = None
    if args.runner.output_dir is not None:
        run_dir = RunDir(
            args.runner.experiment_name,
            base_dir=args.runner.output_dir,
            run_id=args.runner.run_id,
        )

    result = train_dqn(
        env,
        env_params,
        dqn_config=args.dqn,
        runner_config=args.runner,
        run_dir=run_dir,
    )

    n_episodes = len(result.episode_returns)
    last_returns = result.episode_returns[-10:]
    mean_return = sum(last_returns) / len(last_returns) if last_returns else 0.0
    print(
        f"Training complete | "
        f"episodes={n_episodes} | "
        f"iterations={result.agent.current_iteration()} | "
        f"mean_return(last 10)={mean_return:.3f}"
    )
    if run_dir is not None:
        print(f"Outputs in {run_dir}")


if __name__ == "__main__":
    main(tyro.cli(TrainDQNArgs))
