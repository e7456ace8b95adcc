"""
seqpool: global 1-D sequence pooling on CPU (NumPy) or a texture-shader GPU runtime.
"""

from .domain._errors import (
    DataFormatError,
    DeviceNotSupportedError,
    GpuResourceError,
    HostBufferUnavailableError,
    ShapeMismatchError,
)
from .domain._pooling import DataFormat, PoolingMode
from .domain.device._device import Device
from .infrastructure.gpu._default import get_default_runtime
from .infrastructure.gpu._gl_runtime import GLRuntime
from .infrastructure.gpu._runtime import TextureRuntime
from .infrastructure.pooling._global_pooling_1d import (
    GlobalAveragePooling1D,
    GlobalMaxPooling1D,
)
from .infrastructure.tensor._tensor import Tensor

__version__ = "0.1.0"

__all__ = [
    "DataFormat",
    "DataFormatError",
    "Device",
    "DeviceNotSupportedError",
    "GLRuntime",
    "GlobalAveragePooling1D",
    "GlobalMaxPooling1D",
    "GpuResourceError",
    "HostBufferUnavailableError",
    "PoolingMode",
    "ShapeMismatchError",
    "Tensor",
    "TextureRuntime",
    "get_default_runtime",
]
