"""Training and evaluation loops.

``train_dqn`` runs a Python outer loop over jitted environment calls,
feeding a stateful ``DQNAgent``.  ``evaluate`` runs several episodes
side by side with one batched action selection per step.
"""

from hfo_dqn.runner.config import RunnerConfig
from hfo_dqn.runner.evaluator import EvalMetrics, evaluate
from hfo_dqn.runner.train_dqn import DQNTrainResult, train_dqn

__all__ = [
    "DQNTrainResult",
    "EvalMetrics",
    "RunnerConfig",
    "evaluate",
    "train_dqn",
]
