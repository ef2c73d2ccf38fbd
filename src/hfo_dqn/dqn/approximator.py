"""Value approximators with a fixed forward batch width.

Two capabilities share one parameter format:

- :class:`ValueApproximator` is read-only.  It evaluates Q-values for
  exactly ``batch_width`` rows, copies parameters wholesale from another
  approximator, and saves/loads parameters.  The target network is one
  of these, so target-side code has no way to take a gradient step.
- :class:`TrainableApproximator` adds the solver: an optax optimizer, an
  iteration counter, the masked training step, and snapshot/restore of
  the full training state.

The fixed width keeps every jitted call at one shape, so XLA compiles
``forward`` and ``train_step`` once.  Callers with arbitrary batch sizes
go through :func:`hfo_dqn.dqn.batching.batched_forward`.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import NamedTuple

import chex
import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np
import optax

from hfo_dqn.checkpoint import load_eqx, save_eqx, save_metadata
from hfo_dqn.dqn.config import SolverConfig
from hfo_dqn.dqn.network import QNetwork

logger = logging.getLogger(__name__)


class TrainStepMetrics(NamedTuple):
    """Metrics of one solver iteration."""

    loss: chex.Array
    q_mean: chex.Array  # mean Q of the masked (taken) actions


# ---------------------------------------------------------------------------
# Solver construction
# ---------------------------------------------------------------------------


def make_lr_schedule(config: SolverConfig) -> optax.Schedule:
    """Build the learning-rate schedule named by ``config.lr_policy``."""
    if config.lr_policy == "fixed":
        return optax.constant_schedule(config.base_lr)
    if config.lr_policy == "step":
        return optax.exponential_decay(
            config.base_lr,
            transition_steps=config.lr_stepsize,
            decay_rate=config.lr_gamma,
            staircase=True,
        )
    if config.lr_policy == "exp":
        return optax.exponential_decay(
            config.base_lr, transition_steps=1, decay_rate=config.lr_gamma,
        )
    if config.lr_policy == "inv":
        base_lr, gamma, power = config.base_lr, config.lr_gamma, config.lr_power

        def _inv(count: chex.Numeric) -> chex.Numeric:
            return base_lr * (1.0 + gamma * count) ** (-power)

        return _inv
    raise ValueError(f"Unknown lr_policy {config.lr_policy!r}")


def make_optimizer(config: SolverConfig) -> optax.GradientTransformation:
    """Build the optax solver described by *config*."""
    schedule = make_lr_schedule(config)
    if config.optimizer == "adam":
        tx = optax.adam(schedule, b1=config.momentum, b2=config.momentum2)
    elif config.optimizer == "rmsprop":
        tx = optax.rmsprop(schedule, decay=config.momentum2, momentum=config.momentum)
    elif config.optimizer == "sgd":
        tx = optax.sgd(schedule, momentum=config.momentum)
    else:
        raise ValueError(f"Unknown optimizer {config.optimizer!r}")
    if config.clip_gradients is not None:
        tx = optax.chain(optax.clip_by_global_norm(config.clip_gradients), tx)
    return tx


# ---------------------------------------------------------------------------
# Jitted kernels
# ---------------------------------------------------------------------------


def _copy_params(model: eqx.Module) -> eqx.Module:
    """Deep-copy array leaves of an equinox module."""
    arrays = eqx.filter(model, eqx.is_array)
    copied = jax.tree.map(lambda a: jnp.array(a), arrays)
    static = eqx.filter(model, lambda x: not eqx.is_array(x))
    return eqx.combine(copied, static)


@eqx.filter_jit
def _forward(model: QNetwork, inputs: jax.Array) -> jax.Array:
    return jax.vmap(model)(inputs)


def masked_euclidean_loss(
    model: QNetwork,
    inputs: jax.Array,
    targets: jax.Array,
    mask: jax.Array,
) -> tuple[jax.Array, jax.Array]:
    """``0.5 * sum((Q * mask - targets) ** 2) / batch``.

    Columns where ``mask`` is zero contribute no gradient as long as the
    matching ``targets`` entries are zero too.
    """
    q_all = jax.vmap(model)(inputs)
    diff = q_all * mask - targets
    loss = 0.5 * jnp.sum(diff**2) / inputs.shape[0]
    q_taken = jnp.sum(q_all * mask, axis=-1)
    return loss, jnp.mean(q_taken)


@eqx.filter_jit
def _train_step(
    model: QNetwork,
    opt_state: optax.OptState,
    inputs: jax.Array,
    targets: jax.Array,
    mask: jax.Array,
    optimizer: optax.GradientTransformation,
) -> tuple[QNetwork, optax.OptState, TrainStepMetrics]:
    (loss, q_mean), grads = eqx.filter_value_and_grad(masked_euclidean_loss, has_aux=True)(
        model, inputs, targets, mask
    )
    updates, new_opt_state = optimizer.update(
        grads, opt_state, eqx.filter(model, eqx.is_array)
    )
    new_model = eqx.apply_updates(model, updates)
    return new_model, new_opt_state, TrainStepMetrics(loss=loss, q_mean=q_mean)


# ---------------------------------------------------------------------------
# Approximators
# ---------------------------------------------------------------------------


class ValueApproximator:
    """Read-only Q-function over fixed-width batches."""

    def __init__(self, model: QNetwork, batch_width: int) -> None:
        self._model = model
        self.batch_width = batch_width
        self.input_size: int = model.layers[0].in_features
        self.n_outputs: int = model.layers[-1].out_features

    @classmethod
    def create(
        cls,
        key: jax.Array,
        input_size: int,
        n_outputs: int,
        batch_width: int,
        hidden_sizes: tuple[int, ...],
    ) -> ValueApproximator:
        return cls(QNetwork(input_size, n_outputs, hidden_sizes, key=key), batch_width)

    @property
    def model(self) -> QNetwork:
        return self._model

    def forward(self, inputs: np.ndarray | jax.Array) -> jax.Array:
        """Q-values for exactly ``batch_width`` input rows."""
        inputs = jnp.asarray(inputs, dtype=jnp.float32)
        expected = (self.batch_width, self.input_size)
        if inputs.shape != expected:
            raise ValueError(f"forward expects inputs of shape {expected}, got {inputs.shape}")
        return _forward(self._model, inputs)

    def clone_parameters_from(self, other: ValueApproximator) -> None:
        """Replace every parameter with a copy of *other*'s."""
        if (other.input_size, other.n_outputs) != (self.input_size, self.n_outputs):
            raise ValueError(
                f"cannot clone a {other.input_size}->{other.n_outputs} network into a "
                f"{self.input_size}->{self.n_outputs} one"
            )
        self._model = _copy_params(other.model)

    def parameters(self) -> list[jax.Array]:
        return jax.tree.leaves(eqx.filter(self._model, eqx.is_array))

    def save(self, path: str | Path) -> Path:
        """Write the parameters (no solver state) to *path*."""
        return save_eqx(path, self._model)

    def load_parameters(self, path: str | Path) -> None:
        """Load parameters written by :meth:`save`."""
        self._model = load_eqx(path, self._model)
        logger.info("Loaded parameters from %s", path)


class TrainableApproximator(ValueApproximator):
    """The primary network: a ``ValueApproximator`` plus its solver."""

    def __init__(self, model: QNetwork, batch_width: int, solver_config: SolverConfig) -> None:
        super().__init__(model, batch_width)
        self.solver_config = solver_config
        self._optimizer = make_optimizer(solver_config)
        self._opt_state = self._optimizer.init(eqx.filter(model, eqx.is_array))
        self._iteration = 0

    @classmethod
    def create(  # type: ignore[override]
        cls,
        key: jax.Array,
        input_size: int,
        n_outputs: int,
        batch_width: int,
        solver_config: SolverConfig,
    ) -> TrainableApproximator:
        model = QNetwork(input_size, n_outputs, solver_config.hidden_sizes, key=key)
        return cls(model, batch_width, solver_config)

    @property
    def iteration(self) -> int:
        """Number of completed training steps, including restored ones."""
        return self._iteration

    @property
    def opt_state(self) -> optax.OptState:
        return self._opt_state

    def train_step(
        self,
        inputs: np.ndarray | jax.Array,
        targets: np.ndarray | jax.Array,
        mask: np.ndarray | jax.Array,
    ) -> TrainStepMetrics:
        """One forward + backward + parameter update on a masked batch."""
        inputs = jnp.asarray(inputs, dtype=jnp.float32)
        targets = jnp.asarray(targets, dtype=jnp.float32)
        mask = jnp.asarray(mask, dtype=jnp.float32)
        if inputs.shape != (self.batch_width, self.input_size):
            raise ValueError(
                f"train_step expects inputs of shape {(self.batch_width, self.input_size)}, "
                f"got {inputs.shape}"
            )
        out_shape = (self.batch_width, self.n_outputs)
        if targets.shape != out_shape or mask.shape != out_shape:
            raise ValueError(
                f"train_step expects targets and mask of shape {out_shape}, "
                f"got {targets.shape} and {mask.shape}"
            )

        self._model, self._opt_state, metrics = _train_step(
            self._model, self._opt_state, inputs, targets, mask, self._optimizer,
        )
        self._iteration += 1

        interval = self.solver_config.snapshot_interval
        if interval > 0 and self._iteration % interval == 0:
            self.snapshot()
        return metrics

    def snapshot(self) -> tuple[Path, Path]:
        """Write ``<prefix>_iter_<N>.eqx`` and ``<prefix>_iter_<N>.solverstate``.

        Returns the ``(model_path, solver_state_path)`` pair.
        """
        base = f"{self.solver_config.snapshot_prefix}_iter_{self._iteration}"
        model_path = save_eqx(base + ".eqx", self._model)
        state_path = save_eqx(
            base + ".solverstate",
            (self._model, self._opt_state, jnp.asarray(self._iteration, dtype=jnp.int32)),
        )
        save_metadata(
            state_path,
            {
                "iteration": self._iteration,
                "model": str(model_path),
                "solver": dataclasses.asdict(self.solver_config),
            },
        )
        logger.info("Snapshotting to %s", model_path)
        logger.info("Snapshotting solver state to %s", state_path)
        return model_path, state_path

    def restore_full_state(self, path: str | Path) -> None:
        """Restore parameters, optimizer state and iteration from a solver state."""
        like = (self._model, self._opt_state, jnp.zeros((), dtype=jnp.int32))
        model, opt_state, iteration = load_eqx(path, like)
        self._model = model
        self._opt_state = opt_state
        self._iteration = int(iteration)
        logger.info("Restored solver state from %s at iteration %d", path, self._iteration)
