"""
Concrete Tensor implementation (NumPy host buffer + optional GPU texture).

This module provides a concrete `Tensor` that satisfies the domain-level
`ITensor` protocol. Every tensor owns a NumPy host buffer; it may additionally
own a texture mirror created through a GPU runtime.

Host/texture validity
---------------------
- `create_texture(runtime)` uploads the host buffer; both copies are valid.
- A GPU dispatch that writes into the texture calls `invalidate_host()`;
  from then on host reads raise `HostBufferUnavailableError`.
- `transfer_from_texture()` copies the texture back and makes the host
  buffer valid again.

Design notes
------------
- This file sits in the infrastructure layer: it imports NumPy and concrete
  error types.
- Storage is float32 by default, matching the GPU runtime's texture format.
- A tensor remembers the runtime that created its texture so readback and
  release do not need the runtime passed again.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import numpy as np

from ...domain._errors import DeviceNotSupportedError, HostBufferUnavailableError
from ...domain._gpu_runtime import IGpuRuntime, ITexture
from ...domain._tensor import ITensor
from ...domain.device._device import Device

logger = logging.getLogger(__name__)


class Tensor(ITensor):
    """
    Concrete tensor implementation (NumPy host buffer, optional texture).

    Parameters
    ----------
    shape : tuple[int, ...]
        Tensor shape.
    device : Device or str, optional
        Placement descriptor. Defaults to "cpu". The host buffer exists for
        every placement; the device records where the tensor is consumed.
    dtype : np.dtype, optional
        Element dtype for this tensor. Defaults to np.float32.

    Notes
    -----
    - `_data` is a NumPy ndarray of dtype `self._dtype`, zero-initialized.
    - `_texture` is None until `create_texture` is called.
    """

    def __init__(
        self,
        shape: tuple[int, ...],
        device: Union[Device, str] = "cpu",
        *,
        dtype: np.dtype = np.float32,
    ) -> None:
        self._shape = tuple(int(d) for d in shape)
        self._device = Device.coerce(device)
        self._dtype = np.dtype(dtype)
        self._data = np.zeros(self._shape, dtype=self._dtype)
        self._host_valid = True
        self._texture: Optional[ITexture] = None
        self._runtime: Optional[IGpuRuntime] = None

    @staticmethod
    def _from_numpy(
        arr: Any, *, device: Union[Device, str] = "cpu", dtype: np.dtype = np.float32
    ) -> "Tensor":
        """
        Construct a tensor holding a copy of `arr`.

        Parameters
        ----------
        arr : array_like
            Source values.
        device : Device or str, optional
            Placement descriptor.
        dtype : np.dtype, optional
            Storage dtype. Defaults to np.float32.

        Returns
        -------
        Tensor
            A new tensor with the same shape as `arr`.
        """
        a = np.asarray(arr, dtype=dtype)
        t = Tensor(a.shape, device, dtype=dtype)
        t.copy_from_numpy(a)
        return t

    def __repr__(self) -> str:
        tex = "none" if self._texture is None else f"#{self._texture.id}"
        return (
            f"Tensor(shape={self._shape}, device={self._device}, "
            f"dtype={self._dtype}, texture={tex}, host_valid={self._host_valid})"
        )

    # ---------------------------------------------------------------------
    # Core identity / placement
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the tensor shape.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape.
        """
        return self._shape

    @property
    def device(self) -> Device:
        return self._device

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def ndim(self) -> int:
        return len(self._shape)

    def numel(self) -> int:
        """Return the total number of elements."""
        return int(np.prod(self._shape, dtype=np.int64))

    # ---------------------------------------------------------------------
    # Host access
    # ---------------------------------------------------------------------
    @property
    def host_valid(self) -> bool:
        return self._host_valid

    @property
    def data(self) -> np.ndarray:
        """
        Return the host buffer itself (not a copy).

        Indexing the returned array yields NumPy views, so `t.data[:, i]` is a
        strided column view.

        Raises
        ------
        HostBufferUnavailableError
            If the current values live only in the texture mirror.
        """
        self._require_host()
        return self._data

    def to_numpy(self) -> np.ndarray:
        """
        Return a copy of the host buffer.

        Raises
        ------
        HostBufferUnavailableError
            If the current values live only in the texture mirror.
        """
        self._require_host()
        return self._data.copy()

    def copy_from_numpy(self, arr: Any) -> None:
        """
        Overwrite the host buffer with `arr` (cast to this tensor's dtype).

        The texture mirror, if any, is not updated.

        Raises
        ------
        ValueError
            If `arr` does not match this tensor's shape.
        """
        a = np.asarray(arr, dtype=self._dtype)
        if a.shape != self._shape:
            raise ValueError(
                f"copy_from_numpy shape mismatch: tensor {self._shape} vs array {a.shape}"
            )
        self._data[...] = a
        self._host_valid = True

    def _require_host(self) -> None:
        if not self._host_valid:
            raise HostBufferUnavailableError(self._shape)

    # ---------------------------------------------------------------------
    # Texture mirror
    # ---------------------------------------------------------------------
    @property
    def texture(self) -> Optional[ITexture]:
        return self._texture

    def has_texture(self) -> bool:
        return self._texture is not None and not self._texture.deleted

    def create_texture(self, runtime: IGpuRuntime) -> ITexture:
        """
        Upload the host buffer into a new texture mirror.

        Parameters
        ----------
        runtime : IGpuRuntime
            Runtime that will own the texture.

        Returns
        -------
        ITexture
            The created texture, also stored on this tensor.

        Raises
        ------
        DeviceNotSupportedError
            If `runtime` is None.
        GpuResourceError
            Propagated from the runtime if the upload fails.

        Notes
        -----
        An existing mirror is replaced (and deleted) by the new upload.
        """
        if runtime is None:
            raise DeviceNotSupportedError(
                "create_texture", str(self._device), "No GPU runtime was provided."
            )
        self._require_host()
        if self.has_texture():
            self.release_texture()
        self._texture = runtime.create_texture(self._data)
        self._runtime = runtime
        logger.debug("uploaded %r into texture #%d", self._shape, self._texture.id)
        return self._texture

    def invalidate_host(self) -> None:
        """Mark the host buffer stale after a dispatch wrote the texture."""
        self._host_valid = False

    def transfer_from_texture(self) -> None:
        """
        Copy the texture mirror back into the host buffer.

        Raises
        ------
        DeviceNotSupportedError
            If the tensor has no texture mirror.
        """
        if not self.has_texture():
            raise DeviceNotSupportedError(
                "transfer_from_texture",
                str(self._device),
                "Tensor has no texture mirror.",
            )
        surface = self._runtime.read_texture(self._texture)
        self._data[...] = surface.reshape(self._shape)
        self._host_valid = True
        logger.debug("transferred texture #%d back to host", self._texture.id)

    def release_texture(self) -> None:
        """
        Delete the texture mirror, if any.

        A GPU-resident tensor is transferred back first so its values survive.
        """
        if not self.has_texture():
            self._texture = None
            return
        if not self._host_valid:
            self.transfer_from_texture()
        self._runtime.delete_texture(self._texture)
        self._texture = None
        self._runtime = None
