"""
Process-wide default GPU runtime.

GPU-placed layers constructed without an explicit `runtime` use
`get_default_runtime()`. The runtime kind is read once, on first use, from
the environment:

- `SEQPOOL_GPU_RUNTIME`: `"gl"` (default) for the OpenGL runtime, or
  `"host"` for the NumPy reference runtime.
- `SEQPOOL_GL_BACKEND`: optional moderngl standalone backend for the GL
  runtime (e.g. `"egl"` on a display-less host).

A GL runtime that cannot open a context raises `GpuResourceError`; there is
no silent switch to the host runtime.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from ...domain._gpu_runtime import IGpuRuntime

logger = logging.getLogger(__name__)

GPU_RUNTIME_ENV = "SEQPOOL_GPU_RUNTIME"
GL_BACKEND_ENV = "SEQPOOL_GL_BACKEND"

RUNTIME_KINDS = ("gl", "host")


def runtime_kind_from_env() -> str:
    """
    Return the configured runtime kind.

    Raises
    ------
    ValueError
        If `SEQPOOL_GPU_RUNTIME` names an unknown kind.
    """
    kind = os.environ.get(GPU_RUNTIME_ENV, "gl").strip().lower()
    if kind not in RUNTIME_KINDS:
        raise ValueError(
            f"{GPU_RUNTIME_ENV}={kind!r} is not one of {', '.join(RUNTIME_KINDS)}"
        )
    return kind


@lru_cache(maxsize=1)
def get_default_runtime() -> IGpuRuntime:
    """
    Return the process-wide GPU runtime.

    Notes
    -----
    Uses `lru_cache(maxsize=1)` so the runtime (and its GL context) is created
    at most once per process. Call `get_default_runtime.cache_clear()` after
    changing the environment.
    """
    kind = runtime_kind_from_env()
    if kind == "host":
        from ._runtime import TextureRuntime

        runtime: IGpuRuntime = TextureRuntime()
    else:
        from ._gl_runtime import GLRuntime

        runtime = GLRuntime(backend=os.environ.get(GL_BACKEND_ENV) or None)
    logger.debug("default GPU runtime: %r", runtime)
    return runtime
