"""Runner configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunnerConfig:
    """Hyperparameters of the outer training loop.

    Controls the interaction budget, exploration annealing, evaluation
    schedule, logging and resume.  Agent settings live in ``DQNConfig``.
    """

    # Training budget
    total_timesteps: int = 100_000
    warmup_steps: int = 1_000  # raised to one minibatch if smaller
    update_every: int = 1

    # Exploration (annealed over the solver iteration)
    epsilon_start: float = 1.0
    epsilon_end: float = 0.1
    epsilon_decay_steps: int = 50_000

    # Evaluation (0 disables)
    eval_every: int = 5_000
    eval_episodes: int = 10
    eval_epsilon: float = 0.0
    max_episode_steps: int = 500

    # Logging
    log_interval: int = 1_000

    # Seeding of environment resets and dynamics
    seed: int = 0

    # Outputs (None = nothing written to disk)
    output_dir: str | None = None
    experiment_name: str = "penalty_kick_dqn"
    run_id: str | None = None  # explicit run directory name instead of a timestamp

    # Resume
    model_path: str | None = None  # load parameters only
    solver_path: str | None = None  # resume full solver state
    resume: bool = False  # restore the newest solver state in the run directory
