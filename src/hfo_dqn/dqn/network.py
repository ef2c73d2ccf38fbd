"""Q-network implemented with Equinox."""

from __future__ import annotations

import equinox as eqx
import jax


class QNetwork(eqx.Module):
    """MLP over a flattened input window: ``history -> Q(s, a)`` per column."""

    layers: list

    def __init__(
        self,
        input_size: int,
        n_outputs: int,
        hidden_sizes: tuple[int, ...] = (256, 128),
        *,
        key: jax.Array,
    ) -> None:
        dims = [input_size, *hidden_sizes, n_outputs]
        keys = jax.random.split(key, len(dims) - 1)
        self.layers = [
            eqx.nn.Linear(d_in, d_out, key=k)
            for d_in, d_out, k in zip(dims[:-1], dims[1:], keys)
        ]

    def __call__(self, x: jax.Array) -> jax.Array:
        for layer in self.layers[:-1]:
            x = jax.nn.relu(layer(x))
        return self.layers[-1](x)
