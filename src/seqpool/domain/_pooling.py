"""
Pooling layer interfaces for seqpool.

This module defines the configuration enums and the **domain-level Protocol**
for global 1-D pooling: a reduction whose window spans the entire sequence
dimension, producing one value per feature regardless of input length.

Shape semantics
---------------
Input:
    x.shape == (steps, features)

Output:
    y.shape == (features,)

Notes
-----
This module contains **no NumPy or backend-specific logic** and is safe to
depend on from any layer of the architecture.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, Union, runtime_checkable

from ._errors import DataFormatError
from ._layer import ILayer
from ._tensor import ITensor


class PoolingMode(Enum):
    """
    Reduction applied along the sequence axis.

    Attributes
    ----------
    MAX : PoolingMode
        Column maximum.
    AVERAGE : PoolingMode
        Column sum divided by the number of steps.
    """

    MAX = "max"
    AVERAGE = "average"


class DataFormat(Enum):
    """
    Dimension-ordering convention carried through the layer interface.

    For 1-D global pooling the tag does not alter the reduction; it is kept
    for configuration consistency with other layers.
    """

    CHANNELS_LAST = "channels_last"
    CHANNELS_FIRST = "channels_first"

    @classmethod
    def parse(cls, value: Union[str, "DataFormat"]) -> "DataFormat":
        """
        Normalize a user-facing data-format value.

        Raises
        ------
        DataFormatError
            If `value` is not a recognized data format.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise DataFormatError(value) from None


@runtime_checkable
class IGlobalPooling1D(ILayer, Protocol):
    """
    Protocol for global 1-D pooling layers.

    Design constraints
    ------------------
    - Pooling layers MUST NOT own trainable parameters.
    - The pooling mode is fixed at construction.
    - Inputs are borrowed: a layer may create a texture mirror on its input
      but MUST NOT alter the input's logical values.
    """

    @property
    def pooling(self) -> PoolingMode:
        """Return the reduction applied along the sequence axis."""
        ...

    @property
    def data_format(self) -> DataFormat:
        """Return the carried data-format tag."""
        ...

    def call(self, x: ITensor) -> ITensor:
        """
        Reduce `x` of shape (steps, features) to shape (features,).

        Raises
        ------
        ShapeMismatchError
            If `x` is not 2-D, is empty along either axis, or its feature count
            differs from the one the layer's cached output was built for.
        """
        ...
