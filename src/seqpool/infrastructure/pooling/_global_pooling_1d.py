"""
Global 1-D pooling layers for seqpool.

- `_GlobalPooling1D`        : the shared operator (max by default)
- `GlobalMaxPooling1D`      : column maximum over the step axis
- `GlobalAveragePooling1D`  : column mean over the step axis

Each layer reduces an input of shape (steps, features) to (features,) on
either the CPU (NumPy) or the GPU texture runtime. The backend is chosen once,
from the layer's device, when the layer is constructed.

GPU result placement
--------------------
After a GPU dispatch the layer asks its materialization policy whether the
result must be transferred back to host memory. The default policy transfers
only when the layer has no outbound consumers; otherwise the output stays
GPU-resident for the next layer, and its host buffer must not be read until
`transfer_from_texture()` is called.

Shape contract
--------------
Inputs must be 2-D with at least one step and one feature. On the GPU path
the first call fixes the feature count; a later input with a different
feature count raises `ShapeMismatchError` (the output is never reallocated).
The step count may vary between calls.

Notes
-----
- Input tensors are borrowed. The GPU path creates a texture on an input that
  has none; this changes its representation, never its values.
- A layer instance is meant for one execution thread. The one-time output
  allocation is locked, but concurrent calls still share one output buffer.
"""

from __future__ import annotations

import logging
import warnings
from typing import Callable, Optional, Union

from ...domain._errors import ShapeMismatchError
from ...domain._gpu_runtime import IGpuRuntime, IProgram
from ...domain._layer import ILayer
from ...domain._pooling import DataFormat, IGlobalPooling1D, PoolingMode
from ...domain.device._device import Device
from ...domain.model._pool1d_mixin import GlobalPool1dConfigMixin
from .._layer import Layer
from ..gpu._default import get_default_runtime
from ..module._serialization_core import register_layer
from ..tensor._tensor import Tensor
from ._pooling_strategy import (
    CpuPoolingStrategy,
    GpuPoolingStrategy,
    PoolingStrategy,
)

logger = logging.getLogger(__name__)

MaterializePolicy = Callable[[ILayer], bool]


def materialize_when_terminal(layer: ILayer) -> bool:
    """Default policy: transfer back only when nothing downstream consumes the output."""
    return len(layer.outbound) == 0


class _GlobalPooling1D(GlobalPool1dConfigMixin, Layer, IGlobalPooling1D):
    """
    Global 1-D pooling operator.

    Parameters
    ----------
    data_format : str or DataFormat, optional
        "channels_last" (default) or "channels_first". Carried for
        configuration consistency; it does not change the reduction.
    pooling : PoolingMode, optional
        Reduction mode. Defaults to `PoolingMode.MAX`.
    name : str, optional
        Layer name.
    device : Device or str, optional
        "cpu" (default) or a GPU device such as "gpu:0".
    runtime : IGpuRuntime, optional
        GPU runtime for a GPU-placed layer. Defaults to `get_default_runtime()`.
        Ignored on CPU.
    should_materialize_output : callable, optional
        Policy `(layer) -> bool` deciding whether a GPU result is transferred
        back to host memory after dispatch. Defaults to
        `materialize_when_terminal`.

    Raises
    ------
    DataFormatError
        If `data_format` is not recognized.
    GpuResourceError
        If the layer is GPU-placed and the shader program fails to compile.
    """

    def __init__(
        self,
        data_format: Union[str, DataFormat] = "channels_last",
        *,
        pooling: PoolingMode = PoolingMode.MAX,
        name: Optional[str] = None,
        device: Union[Device, str] = "cpu",
        runtime: Optional[IGpuRuntime] = None,
        should_materialize_output: Optional[MaterializePolicy] = None,
    ) -> None:
        super().__init__(name=name, device=device)
        self._data_format = DataFormat.parse(data_format)
        self._pooling = PoolingMode(pooling)
        self._should_materialize = should_materialize_output or materialize_when_terminal
        self.input_shape: Optional[tuple[int, ...]] = None

        if self._data_format is DataFormat.CHANNELS_FIRST:
            warnings.warn(
                f"{self.layer_class} '{self.name}': data_format='channels_first' is "
                "carried only; inputs are still reduced along axis 0 (steps).",
                RuntimeWarning,
                stacklevel=2,
            )

        self._strategy: PoolingStrategy
        if self.gpu:
            self._strategy = GpuPoolingStrategy(
                self.device, runtime if runtime is not None else get_default_runtime()
            )
        else:
            self._strategy = CpuPoolingStrategy(self.device)

        logger.debug(
            "constructed %s '%s' (pooling=%s, backend=%s)",
            self.layer_class,
            self.name,
            self._pooling.value,
            self._strategy.backend,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def pooling(self) -> PoolingMode:
        return self._pooling

    @property
    def data_format(self) -> DataFormat:
        return self._data_format

    @property
    def backend(self) -> str:
        """Execution backend tag, "cpu" or "gpu"."""
        return self._strategy.backend

    @property
    def runtime(self) -> Optional[IGpuRuntime]:
        return self._strategy.runtime

    @property
    def program(self) -> Optional[IProgram]:
        """Compiled shader program (None on CPU)."""
        return self._strategy.program

    @property
    def output(self) -> Optional[Tensor]:
        """Most recent output tensor (the cached one on GPU), or None."""
        return self._strategy.last_output

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------
    def _check_input(self, x: Tensor) -> None:
        shape = tuple(x.shape)
        if len(shape) != 2 or shape[0] < 1 or shape[1] < 1:
            raise ShapeMismatchError("(steps >= 1, features >= 1)", shape)

        ready = self._strategy.ready
        if ready is not None and shape[1] != ready.features:
            raise ShapeMismatchError(f"(steps, {ready.features})", shape)

    def call(self, x: Tensor) -> Tensor:
        """
        Reduce `x` of shape (steps, features) to shape (features,).

        Parameters
        ----------
        x : Tensor
            Input tensor. On the GPU path a texture is created on `x` if it
            has none.

        Returns
        -------
        Tensor
            Max: per-feature maximum. Average: per-feature sum / steps.
            On GPU, the same cached tensor is returned on every call and may
            be GPU-resident (see module notes).

        Raises
        ------
        ShapeMismatchError
            If `x` violates the shape contract.
        GpuResourceError
            Propagated from the GPU runtime; there is no CPU fallback.
        """
        self._check_input(x)
        self.input_shape = tuple(x.shape)

        materialize = bool(self._should_materialize(self)) if self.gpu else True
        out = self._strategy.run(x, mode=self._pooling, materialize=materialize)

        logger.debug(
            "%s '%s' reduced %s -> %s (%s, host_valid=%s)",
            self.layer_class,
            self.name,
            self.input_shape,
            out.shape,
            self._strategy.backend,
            out.host_valid,
        )
        return out

    def release(self) -> None:
        """
        Drop the cached output; on GPU also delete its texture.

        The compiled program is kept, so the layer remains callable and the
        next call allocates a new output.
        """
        self._strategy.release()
        self.input_shape = None


@register_layer()
class GlobalMaxPooling1D(_GlobalPooling1D):
    """
    Global max pooling over the step axis: (steps, features) -> (features,).
    """

    def __init__(
        self,
        data_format: Union[str, DataFormat] = "channels_last",
        *,
        name: Optional[str] = None,
        device: Union[Device, str] = "cpu",
        runtime: Optional[IGpuRuntime] = None,
        should_materialize_output: Optional[MaterializePolicy] = None,
    ) -> None:
        super().__init__(
            data_format,
            pooling=PoolingMode.MAX,
            name=name,
            device=device,
            runtime=runtime,
            should_materialize_output=should_materialize_output,
        )


@register_layer()
class GlobalAveragePooling1D(_GlobalPooling1D):
    """
    Global average pooling over the step axis: (steps, features) -> (features,).
    """

    def __init__(
        self,
        data_format: Union[str, DataFormat] = "channels_last",
        *,
        name: Optional[str] = None,
        device: Union[Device, str] = "cpu",
        runtime: Optional[IGpuRuntime] = None,
        should_materialize_output: Optional[MaterializePolicy] = None,
    ) -> None:
        super().__init__(
            data_format,
            pooling=PoolingMode.AVERAGE,
            name=name,
            device=device,
            runtime=runtime,
            should_materialize_output=should_materialize_output,
        )
