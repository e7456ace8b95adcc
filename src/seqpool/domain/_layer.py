"""
Layer interface definitions.

This module defines the domain-level interface for inference layers using
structural subtyping via `typing.Protocol`. Any object that implements the
required members is considered a valid layer, independent of inheritance.

The layer contract exposes the two facts GPU-aware layers need from the
surrounding graph:

- `gpu`      : whether the layer executes through the GPU runtime,
- `outbound` : the downstream layers consuming its output.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class ILayer(Protocol):
    """
    Domain-level layer interface.

    Notes
    -----
    This interface is safe to use with `isinstance` checks due to the
    `@runtime_checkable` decorator.
    """

    name: str
    layer_class: str

    @property
    def gpu(self) -> bool:
        """Whether the layer executes through the GPU runtime."""
        ...

    @property
    def outbound(self) -> Sequence["ILayer"]:
        """Downstream layers consuming this layer's output."""
        ...

    def call(self, x: ITensor) -> ITensor:
        """
        Execute the layer's computation.

        Parameters
        ----------
        x : ITensor
            Input tensor to the layer.

        Returns
        -------
        ITensor
            Output tensor produced by the layer.
        """
        ...
