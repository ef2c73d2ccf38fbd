"""Observation and action spaces.

Spaces are immutable pytree nodes describing shape, dtype and bounds.
"""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp


class Discrete(eqx.Module):
    """Space of integers {0, 1, ..., n-1}."""

    n: int = eqx.field(static=True)

    def sample(self, key: jax.Array) -> jax.Array:
        return jax.random.randint(key, shape=(), minval=0, maxval=self.n)

    def contains(self, x: jax.Array) -> jax.Array:
        return (x >= 0) & (x < self.n) & (x == jnp.floor(x))

    @property
    def shape(self) -> tuple[int, ...]:
        return ()

    @property
    def dtype(self) -> jnp.dtype:
        return jnp.int32


class Box(eqx.Module):
    """Bounded n-dimensional continuous space with scalar bounds."""

    low: float = eqx.field(static=True)
    high: float = eqx.field(static=True)
    shape: tuple[int, ...] = eqx.field(static=True)

    def sample(self, key: jax.Array) -> jax.Array:
        return jax.random.uniform(key, shape=self.shape, minval=self.low, maxval=self.high)

    def contains(self, x: jax.Array) -> jax.Array:
        return jnp.all((x >= self.low) & (x <= self.high))

    @property
    def dtype(self) -> jnp.dtype:
        return jnp.float32
