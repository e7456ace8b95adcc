from .global_pool1d_cpu import (
    global_avgpool1d_forward_cpu,
    global_maxpool1d_forward_cpu,
)
from .global_pool1d_gpu import global_pooling_1d_kernel

__all__ = [
    global_avgpool1d_forward_cpu.__name__,
    global_maxpool1d_forward_cpu.__name__,
    global_pooling_1d_kernel.__name__,
]
