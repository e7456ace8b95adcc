"""
CPU reference implementations for global 1-D pooling (NumPy backend).

These functions reduce a `(steps, features)` array along the step axis,
producing one value per feature. They serve as:

- the CPU execution path of the global pooling layers,
- the numerical ground truth the GPU kernel is tested against.

Design notes
------------
- Each feature column is reduced through a strided view `x[:, i]`; no copy of
  the column is made.
- Average pooling sums then divides by `steps` into a floating output
  (`np.result_type(x.dtype, np.float32)`), so integer inputs are not
  truncated.
- NaN propagation follows `np.max` / `np.sum`: a NaN anywhere in a column
  makes that column's result NaN.
"""

from __future__ import annotations

import numpy as np


def global_maxpool1d_forward_cpu(x: np.ndarray) -> np.ndarray:
    """
    Global max pooling over the step axis (CPU, NumPy).

    Parameters
    ----------
    x : np.ndarray
        Input array of shape (steps, features), steps >= 1.

    Returns
    -------
    np.ndarray
        Output array of shape (features,) with `x`'s dtype.
    """
    steps, features = x.shape
    y = np.empty((features,), dtype=x.dtype)
    for i in range(features):
        y[i] = np.max(x[:, i])
    return y


def global_avgpool1d_forward_cpu(x: np.ndarray) -> np.ndarray:
    """
    Global average pooling over the step axis (CPU, NumPy).

    Parameters
    ----------
    x : np.ndarray
        Input array of shape (steps, features), steps >= 1.

    Returns
    -------
    np.ndarray
        Output array of shape (features,) with dtype
        `np.result_type(x.dtype, np.float32)`.
    """
    steps, features = x.shape
    y = np.empty((features,), dtype=np.result_type(x.dtype, np.float32))
    for i in range(features):
        y[i] = np.sum(x[:, i]) / steps
    return y
