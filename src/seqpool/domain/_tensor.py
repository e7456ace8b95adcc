"""
Tensor interface definitions.

This module defines the domain-level interface for tensor-like objects using
structural typing. The interface captures what pooling layers need from a
tensor:

- shape and device placement,
- host (NumPy) read access,
- an optional GPU texture mirror with explicit upload and readback.

Host/texture validity
---------------------
A tensor always owns a host buffer. When a GPU dispatch writes into its
texture, the host buffer becomes stale and must not be read until
`transfer_from_texture()` copies the texture back. A tensor whose host buffer
is valid is directly indexable.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from .device._device_protocol import DeviceLike


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    This protocol uses structural typing so that alternative tensor
    implementations can satisfy the same contract.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the tensor.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape.
        """
        ...

    @property
    def device(self) -> DeviceLike:
        """Return the device on which this tensor was placed."""
        ...

    @property
    def texture(self) -> Optional[Any]:
        """Return the GPU texture mirror, or None if none exists."""
        ...

    @property
    def host_valid(self) -> bool:
        """Whether the host buffer holds the tensor's current values."""
        ...

    def to_numpy(self) -> Any:
        """
        Return a copy of the host buffer.

        Raises
        ------
        HostBufferUnavailableError
            If the current values live only in the texture mirror.
        """
        ...

    def create_texture(self, runtime: Any) -> Any:
        """Upload the host buffer into a new texture mirror and return it."""
        ...

    def transfer_from_texture(self) -> None:
        """Copy the texture mirror back into the host buffer."""
        ...

    def invalidate_host(self) -> None:
        """Mark the host buffer stale after the texture has been written."""
        ...

    def release_texture(self) -> None:
        """Delete the texture mirror, if any."""
        ...
