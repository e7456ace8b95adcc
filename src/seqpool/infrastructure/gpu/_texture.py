"""
Texture surfaces for the NumPy texture runtime.

A `Texture` is a 2-D float32 surface identified by a runtime-unique id. 1-D
tensors are stored as a single-row surface `(1, n)`; 2-D tensors keep their
`(rows, cols)` layout.
"""

from __future__ import annotations

import numpy as np


class Texture:
    """
    A 2-D float32 surface owned by a `TextureRuntime`.

    Attributes
    ----------
    id : int
        Runtime-unique handle.
    owner : int
        `id()` of the runtime that created the texture.
    """

    __slots__ = ("id", "owner", "_surface", "_deleted")

    def __init__(self, tex_id: int, owner: int, surface: np.ndarray) -> None:
        self.id = int(tex_id)
        self.owner = owner
        self._surface = surface
        self._deleted = False

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(self._surface.shape)

    @property
    def deleted(self) -> bool:
        return self._deleted

    def __repr__(self) -> str:
        state = "deleted" if self._deleted else "live"
        return f"Texture(id={self.id}, shape={self.shape}, {state})"


def as_surface(data: np.ndarray) -> np.ndarray:
    """
    Convert a 1-D or 2-D host array into a C-contiguous float32 surface.

    Raises
    ------
    ValueError
        If `data` has rank other than 1 or 2.
    """
    a = np.asarray(data, dtype=np.float32)
    if a.ndim == 1:
        a = a.reshape(1, a.shape[0])
    elif a.ndim != 2:
        raise ValueError(f"textures hold 1-D or 2-D data, got ndim={a.ndim}")
    return np.ascontiguousarray(a).copy()
