"""
GPU runtime interface definitions.

This module defines the domain-level contract of the texture-shader GPU
runtime that pooling layers dispatch through. The runtime turns shader source
into executable programs, owns texture surfaces, and runs a program against a
set of bound inputs and uniforms into an output tensor's texture.

Binding records
---------------
- `InputBinding(texture, type, name)`: a texture bound to the sampler `name`,
  interpreted as `type` ("2d").
- `UniformBinding(value, type, name)`: a scalar uniform of GLSL type `type`
  ("int", "float" or "bool").

Notes
-----
This module contains **no NumPy or backend-specific logic**. Every runtime
failure is expected to surface as `GpuResourceError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class ITexture(Protocol):
    """
    A GPU-resident 2-D surface.

    Attributes
    ----------
    id : int
        Runtime-unique texture handle.
    shape : tuple[int, int]
        Surface size as (rows, cols).
    """

    id: int

    @property
    def shape(self) -> tuple[int, int]: ...

    @property
    def deleted(self) -> bool: ...


@runtime_checkable
class IProgram(Protocol):
    """
    A compiled shader program.

    Attributes
    ----------
    name : str
        Kernel entry name declared by the shader source.
    uniforms : Mapping[str, str]
        Declared uniform names mapped to their GLSL types (samplers included).
    """

    name: str
    uniforms: Mapping[str, str]


@dataclass(frozen=True)
class InputBinding:
    """A texture bound to a named sampler uniform."""

    texture: ITexture
    type: str
    name: str


@dataclass(frozen=True)
class UniformBinding:
    """A scalar uniform value bound by name."""

    value: Any
    type: str
    name: str


@runtime_checkable
class IGpuRuntime(Protocol):
    """
    Texture-shader GPU runtime contract.

    Implementations compile programs once, create/read/delete textures, and
    dispatch a program into the texture of an output tensor. Dispatch
    invalidates the output tensor's host buffer.
    """

    def compile_program(self, source: str) -> IProgram:
        """
        Compile shader source into an executable program.

        Raises
        ------
        GpuResourceError
            If the source cannot be compiled.
        """
        ...

    def create_texture(self, data: Any) -> ITexture:
        """
        Upload a 1-D or 2-D host array into a new texture.

        Raises
        ------
        GpuResourceError
            If the surface exceeds the runtime's limits.
        """
        ...

    def read_texture(self, texture: ITexture) -> Any:
        """Return a host copy of the texture contents as a 2-D array."""
        ...

    def delete_texture(self, texture: ITexture) -> None:
        """Release a texture. Deleting twice is an error."""
        ...

    def run_program(
        self,
        program: IProgram,
        *,
        output: ITensor,
        inputs: Sequence[InputBinding],
        uniforms: Sequence[UniformBinding],
    ) -> None:
        """
        Dispatch `program` writing into `output.texture`.

        Raises
        ------
        GpuResourceError
            If bindings do not match the program's declarations or any
            texture is unusable.
        """
        ...
