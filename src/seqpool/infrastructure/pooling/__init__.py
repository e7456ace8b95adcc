from ._global_pooling_1d import (
    GlobalAveragePooling1D,
    GlobalMaxPooling1D,
    _GlobalPooling1D,
    materialize_when_terminal,
)
from ._pooling_strategy import (
    CpuPoolingStrategy,
    GpuOutput,
    GpuPoolingStrategy,
    PoolingStrategy,
)

__all__ = [
    CpuPoolingStrategy.__name__,
    GlobalAveragePooling1D.__name__,
    GlobalMaxPooling1D.__name__,
    GpuOutput.__name__,
    GpuPoolingStrategy.__name__,
    PoolingStrategy.__name__,
    _GlobalPooling1D.__name__,
    materialize_when_terminal.__name__,
]
