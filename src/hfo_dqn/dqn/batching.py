"""Adapter between arbitrary batch sizes and a fixed-width forward.

``ValueApproximator.forward`` only accepts exactly ``batch_width`` rows.
:func:`batched_forward` takes any number of rows, splits them into
chunks of that width, pads the last chunk with zero rows and drops the
padded outputs again.
"""

from __future__ import annotations

import numpy as np

from hfo_dqn.dqn.approximator import ValueApproximator


def pad_to_width(inputs: np.ndarray, width: int) -> np.ndarray:
    """Append zero rows so *inputs* has exactly *width* rows."""
    n = inputs.shape[0]
    if n > width:
        raise ValueError(f"cannot pad {n} rows down to width {width}")
    if n == width:
        return inputs
    padding = np.zeros((width - n, *inputs.shape[1:]), dtype=inputs.dtype)
    return np.concatenate([inputs, padding], axis=0)


def batched_forward(approximator: ValueApproximator, inputs: np.ndarray) -> np.ndarray:
    """Q-values for every row of *inputs*, shape ``(len(inputs), n_outputs)``."""
    inputs = np.asarray(inputs, dtype=np.float32)
    if inputs.ndim != 2 or inputs.shape[1] != approximator.input_size:
        raise ValueError(
            f"expected inputs of shape (n, {approximator.input_size}), got {inputs.shape}"
        )
    n = inputs.shape[0]
    width = approximator.batch_width
    if n == 0:
        return np.zeros((0, approximator.n_outputs), dtype=np.float32)

    outputs = []
    for start in range(0, n, width):
        chunk = inputs[start:start + width]
        q = np.asarray(approximator.forward(pad_to_width(chunk, width)))
        outputs.append(q[: chunk.shape[0]])
    return np.concatenate(outputs, axis=0)
