from hfo_dqn.dqn.agent import DQNAgent
from hfo_dqn.dqn.approximator import TrainableApproximator, TrainStepMetrics, ValueApproximator
from hfo_dqn.dqn.batching import batched_forward
from hfo_dqn.dqn.config import DQNConfig, SolverConfig
from hfo_dqn.dqn.network import QNetwork
from hfo_dqn.dqn.policy import EpsilonGreedyPolicy
from hfo_dqn.dqn.update import UpdateEngine, UpdateMetrics

__all__ = [
    "DQNAgent",
    "DQNConfig",
    "EpsilonGreedyPolicy",
    "QNetwork",
    "SolverConfig",
    "TrainStepMetrics",
    "TrainableApproximator",
    "UpdateEngine",
    "UpdateMetrics",
    "ValueApproximator",
    "batched_forward",
]
