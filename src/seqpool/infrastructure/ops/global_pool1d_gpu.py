"""
Host kernel for the `global_pooling_1d` shader.

`shaders/global_pooling_1d.glsl` declares `#pragma kernel(global_pooling_1d)`;
the texture runtime executes it through the function registered here. The
kernel follows the shader texel-for-texel:

- one output texel per feature column of the input surface,
- a sequential scan of `channelDataSize` rows starting from row 0,
- `max` accumulation or float32 summation followed by one division.

Interface contract
------------------
    uniform sampler2D x;          // (rows = steps, cols = features)
    uniform int channelDataSize;  // rows to reduce per column
    uniform bool isMaxPooling;    // true -> max, false -> average
    output surface                // (1, features)
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from ...domain._errors import GpuResourceError
from ..gpu._program import register_kernel


@register_kernel("global_pooling_1d")
def global_pooling_1d_kernel(
    inputs: Mapping[str, np.ndarray],
    uniforms: Mapping[str, Any],
    out_shape: tuple,
) -> np.ndarray:
    """
    Reduce the first `channelDataSize` rows of sampler `x` per column.

    Raises
    ------
    GpuResourceError
        If `channelDataSize` is outside [1, rows] or the output surface is not
        a single row with one texel per input column.
    """
    x = inputs["x"]
    n = int(uniforms["channelDataSize"])
    is_max = bool(uniforms["isMaxPooling"])

    rows, cols = x.shape
    if n < 1 or n > rows:
        raise GpuResourceError(
            "run_program", f"channelDataSize={n} outside texture rows [1, {rows}]"
        )
    if tuple(out_shape) != (1, cols):
        raise GpuResourceError(
            "run_program",
            f"output surface {tuple(out_shape)} does not match (1, {cols})",
        )

    val = x[0, :].astype(np.float32)
    for row in range(1, n):
        if is_max:
            val = np.maximum(val, x[row, :])
        else:
            val = val + x[row, :]
    if not is_max:
        val = val / np.float32(n)
    return val.reshape(out_shape).astype(np.float32, copy=False)
