"""JAX PRNG key helpers.

Every random draw in hfo_dqn (parameter init, exploration coins,
random actions, replay sampling) consumes a key split off an
explicitly seeded root.  Nothing reads global random state.

Usage::

    from hfo_dqn.seeding import make_rng, split_key

    rng = make_rng(0)
    rng, sample_key = split_key(rng)
"""

from __future__ import annotations

import jax


def make_rng(seed: int) -> jax.Array:
    """Create a PRNG key from an integer seed."""
    return jax.random.PRNGKey(seed)


def split_key(rng: jax.Array) -> tuple[jax.Array, jax.Array]:
    """Split *rng* into ``(new_rng, subkey)``."""
    return tuple(jax.random.split(rng))  # type: ignore[return-value]

