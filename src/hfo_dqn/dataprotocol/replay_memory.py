"""Bounded FIFO replay memory with uniform sampling.

Transitions are stored as Python objects (not unpacked into arrays) so
that overlapping histories keep sharing their observation vectors.
Storage is a fixed-capacity ring: once full, each insertion overwrites
the oldest entry.

Typical usage::

    memory = ReplayMemory(capacity=500_000)
    memory.add(transition)
    if len(memory) >= batch_size:
        rng, key = split_key(rng)
        batch = memory.sample(key, batch_size)
"""

from __future__ import annotations

from collections.abc import Iterator

import jax
import numpy as np

from hfo_dqn.errors import ConfigError, InsufficientMemoryError
from hfo_dqn.types import Transition


class ReplayMemory:
    """Fixed-size circular buffer of transitions."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ConfigError(f"replay memory capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._storage: list[Transition] = []
        self._ptr = 0

    def add(self, transition: Transition) -> None:
        """Append *transition*, evicting the oldest one when full."""
        if len(self._storage) < self.capacity:
            self._storage.append(transition)
        else:
            self._storage[self._ptr] = transition
        self._ptr = (self._ptr + 1) % self.capacity

    def sample(self, key: jax.Array, batch_size: int) -> list[Transition]:
        """Draw *batch_size* transitions uniformly, with replacement."""
        if batch_size > len(self._storage):
            raise InsufficientMemoryError(
                f"cannot sample {batch_size} transitions from a memory holding "
                f"{len(self._storage)}"
            )
        indices = np.asarray(
            jax.random.randint(key, (batch_size,), 0, len(self._storage))
        )
        return [self._storage[i] for i in indices]

    def clear(self) -> None:
        self._storage.clear()
        self._ptr = 0

    def __len__(self) -> int:
        return len(self._storage)

    def __iter__(self) -> Iterator[Transition]:
        """Iterate oldest first."""
        if len(self._storage) < self.capacity:
            yield from self._storage
        else:
            yield from self._storage[self._ptr:]
            yield from self._storage[: self._ptr]

    def __repr__(self) -> str:
        return f"ReplayMemory(size={len(self)}, capacity={self.capacity})"
