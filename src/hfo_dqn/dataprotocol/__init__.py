"""Experience storage."""

from hfo_dqn.dataprotocol.replay_memory import ReplayMemory

__all__ = ["ReplayMemory"]
