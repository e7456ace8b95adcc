"""
Execution strategies for global 1-D pooling.

A pooling layer selects exactly one strategy at construction:

- `CpuPoolingStrategy` reduces the host buffer with the NumPy reference ops
  and allocates a fresh output tensor on every call.
- `GpuPoolingStrategy` owns the compiled shader program and the cached
  output tensor/texture, and dispatches through the GPU runtime.

Both satisfy the `PoolingStrategy` protocol: `run(x, *, mode, materialize)`
with identical logical results, plus `runtime`, `program` and `ready`, which
the CPU strategy reports as None.

GPU output lifecycle
--------------------
The cached output is modelled as two states: `None` (uninitialized) or a
`GpuOutput` record (ready). The transition happens once, under a lock, on the
first call; later calls overwrite the same output texture in place.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

from ...domain._gpu_runtime import IGpuRuntime, IProgram, InputBinding, UniformBinding
from ...domain._pooling import PoolingMode
from ...domain.device._device import Device
from ..gpu._runtime import load_shader
from ..ops.global_pool1d_cpu import (
    global_avgpool1d_forward_cpu,
    global_maxpool1d_forward_cpu,
)
from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)

POOLING_SHADER = "global_pooling_1d"


class PoolingStrategy(Protocol):
    """Execution backend of a global pooling layer."""

    backend: str

    @property
    def runtime(self) -> Optional[IGpuRuntime]: ...

    @property
    def program(self) -> Optional[IProgram]: ...

    @property
    def ready(self) -> Optional["GpuOutput"]: ...

    @property
    def last_output(self) -> Optional[Tensor]: ...

    def run(self, x: Tensor, *, mode: PoolingMode, materialize: bool) -> Tensor: ...

    def release(self) -> None: ...


class CpuPoolingStrategy:
    """NumPy execution of global pooling; no GPU resources."""

    backend = "cpu"

    def __init__(self, device: Device) -> None:
        self.device = device
        self._last: Optional[Tensor] = None

    @property
    def runtime(self) -> None:
        return None

    @property
    def program(self) -> None:
        return None

    @property
    def ready(self) -> None:
        return None

    @property
    def last_output(self) -> Optional[Tensor]:
        return self._last

    def run(self, x: Tensor, *, mode: PoolingMode, materialize: bool) -> Tensor:
        # A GPU-resident input from an upstream layer is brought back first.
        if not x.host_valid:
            x.transfer_from_texture()

        if mode is PoolingMode.MAX:
            y = global_maxpool1d_forward_cpu(x.data)
        else:
            y = global_avgpool1d_forward_cpu(x.data)

        # average pooling promotes integer inputs to a floating dtype
        out = Tensor._from_numpy(y, device=self.device, dtype=y.dtype)
        self._last = out
        return out

    def release(self) -> None:
        self._last = None


@dataclass(frozen=True)
class GpuOutput:
    """
    Ready state of the GPU path.

    Attributes
    ----------
    tensor : Tensor
        Cached output tensor of shape (features,) with a live texture.
    features : int
        Feature count the output was allocated for; the shape contract for
        every later call.
    """

    tensor: Tensor
    features: int


class GpuPoolingStrategy:
    """
    Texture-shader execution of global pooling.

    Parameters
    ----------
    device : Device
        GPU placement of the owning layer.
    runtime : IGpuRuntime
        Runtime used to compile, allocate and dispatch.

    Notes
    -----
    The program is compiled in the constructor; a compilation failure
    propagates as `GpuResourceError`.
    """

    backend = "gpu"

    def __init__(self, device: Device, runtime: IGpuRuntime) -> None:
        self.device = device
        self.runtime = runtime
        self.program: IProgram = runtime.compile_program(load_shader(POOLING_SHADER))
        self._lock = threading.Lock()
        self._ready: Optional[GpuOutput] = None

    @property
    def ready(self) -> Optional[GpuOutput]:
        return self._ready

    @property
    def last_output(self) -> Optional[Tensor]:
        return None if self._ready is None else self._ready.tensor

    def _ensure_output(self, features: int) -> GpuOutput:
        with self._lock:
            if self._ready is None:
                out = Tensor((features,), device=self.device)
                out.create_texture(self.runtime)
                self._ready = GpuOutput(tensor=out, features=features)
                logger.debug(
                    "allocated pooling output (%d,) on texture #%d",
                    features,
                    out.texture.id,
                )
            return self._ready

    def run(self, x: Tensor, *, mode: PoolingMode, materialize: bool) -> Tensor:
        if not x.has_texture():
            x.create_texture(self.runtime)

        steps, features = x.shape
        ready = self._ensure_output(features)

        self.runtime.run_program(
            self.program,
            output=ready.tensor,
            inputs=[InputBinding(texture=x.texture, type="2d", name="x")],
            uniforms=[
                UniformBinding(value=steps, type="int", name="channelDataSize"),
                UniformBinding(
                    value=mode is PoolingMode.MAX, type="bool", name="isMaxPooling"
                ),
            ],
        )

        if materialize:
            ready.tensor.transfer_from_texture()
        return ready.tensor

    def release(self) -> None:
        """Delete the cached output texture and return to the uninitialized state."""
        with self._lock:
            if self._ready is not None:
                self._ready.tensor.release_texture()
                self._ready = None
