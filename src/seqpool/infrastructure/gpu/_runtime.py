"""
Host reference runtime for seqpool.

`TextureRuntime` implements the domain `IGpuRuntime` contract on the host:
textures are float32 NumPy surfaces and a program runs the host kernel
registered under the name its source declares with `#pragma kernel(<name>)`.
It follows the same resource lifecycle as `GLRuntime` (compile once, upload,
dispatch into an output texture, explicit readback) and enforces the same
binding contract, so it serves as the numerical reference for the GL backend
and as a runtime for machines without an OpenGL driver. It never executes the
GLSL source itself.

Key behaviors
-------------
- Strict dispatch: bound inputs and uniforms must match the program's
  declarations exactly (names and types), see `bind_arguments`.
- Explicit failure: every compile/texture/dispatch problem raises
  `GpuResourceError`; nothing is retried.
- Counters (`textures_created`, `live_textures`, `programs_compiled`,
  `dispatches`, `reads`) expose resource usage for tests and benchmarks.
"""

from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

import numpy as np

from ...domain._errors import GpuResourceError
from ...domain._gpu_runtime import IGpuRuntime, InputBinding, UniformBinding
from ...domain._tensor import ITensor
from ._program import ShaderProgram, bind_arguments, parse_program
from ._texture import Texture, as_surface

logger = logging.getLogger(__name__)

MAX_TEXTURE_SIZE = 16384

SHADER_DIR = Path(__file__).resolve().parent / "shaders"


def load_shader(name: str) -> str:
    """
    Return the source of a shader shipped in `gpu/shaders`.

    Raises
    ------
    FileNotFoundError
        If no `<name>.glsl` exists.
    """
    p = SHADER_DIR / f"{name}.glsl"
    if not p.exists():
        raise FileNotFoundError(f"Shader source not found: {p}")
    return p.read_text(encoding="utf-8")


def _ensure_builtin_kernels() -> None:
    # Importing the ops package registers the built-in host kernels.
    from .. import ops  # noqa: F401


class TextureRuntime(IGpuRuntime):
    """
    Host-executed reference runtime.

    Parameters
    ----------
    max_texture_size : int, optional
        Largest allowed surface edge. Defaults to `MAX_TEXTURE_SIZE`.
    """

    kind = "host"

    def __init__(self, *, max_texture_size: int = MAX_TEXTURE_SIZE) -> None:
        self.max_texture_size = int(max_texture_size)
        self._ids = itertools.count(1)
        self._live: Dict[int, Texture] = {}
        self.textures_created = 0
        self.programs_compiled = 0
        self.dispatches = 0
        self.reads = 0

    def __repr__(self) -> str:
        return (
            f"TextureRuntime(live_textures={self.live_textures}, "
            f"programs_compiled={self.programs_compiled}, dispatches={self.dispatches})"
        )

    @property
    def live_textures(self) -> int:
        return len(self._live)

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------
    def compile_program(self, source: str) -> ShaderProgram:
        _ensure_builtin_kernels()
        program = parse_program(source, owner=id(self))
        self.programs_compiled += 1
        logger.debug(
            "compiled program '%s' (uniforms=%s)", program.name, dict(program.uniforms)
        )
        return program

    # ------------------------------------------------------------------
    # Textures
    # ------------------------------------------------------------------
    def create_texture(self, data: Any) -> Texture:
        surface = checked_surface(data, self.max_texture_size)
        tex = Texture(next(self._ids), id(self), surface)
        self._live[tex.id] = tex
        self.textures_created += 1
        logger.debug("created texture #%d %s", tex.id, tex.shape)
        return tex

    def _check_texture(self, op: str, texture: Texture) -> None:
        if not isinstance(texture, Texture) or texture.owner != id(self):
            raise GpuResourceError(op, f"{texture!r} is not owned by this runtime")
        if texture.deleted:
            raise GpuResourceError(op, f"texture #{texture.id} was deleted")

    def read_texture(self, texture: Texture) -> np.ndarray:
        self._check_texture("read_texture", texture)
        self.reads += 1
        return texture._surface.copy()

    def delete_texture(self, texture: Texture) -> None:
        self._check_texture("delete_texture", texture)
        texture._deleted = True
        del self._live[texture.id]
        texture._surface = np.empty((0, 0), dtype=np.float32)
        logger.debug("deleted texture #%d", texture.id)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def run_program(
        self,
        program: ShaderProgram,
        *,
        output: ITensor,
        inputs: Sequence[InputBinding],
        uniforms: Sequence[UniformBinding],
    ) -> None:
        if not isinstance(program, ShaderProgram) or program.owner != id(self):
            raise GpuResourceError(
                "run_program", f"{program!r} was not compiled by this runtime"
            )

        target = output.texture
        if target is None:
            raise GpuResourceError("run_program", "output tensor has no texture")
        self._check_texture("run_program", target)

        textures, values = bind_arguments(
            program.name, program.uniforms, inputs, uniforms, self._check_texture
        )
        surfaces = {name: tex._surface for name, tex in textures.items()}

        result = program.kernel(surfaces, values, target.shape)
        result = np.asarray(result, dtype=np.float32)
        if result.shape != target.shape:
            raise GpuResourceError(
                "run_program",
                f"kernel '{program.name}' produced {result.shape}, "
                f"output texture is {target.shape}",
            )

        target._surface[...] = result
        output.invalidate_host()
        self.dispatches += 1
        logger.debug(
            "dispatched '%s' -> texture #%d %s", program.name, target.id, target.shape
        )


def checked_surface(data: Any, max_texture_size: int) -> np.ndarray:
    """
    Convert `data` into a float32 surface that fits a texture.

    Raises
    ------
    GpuResourceError
        If `data` is not 1-D/2-D, is empty, or has an edge longer than
        `max_texture_size`.
    """
    try:
        surface = as_surface(data)
    except ValueError as e:
        raise GpuResourceError("create_texture", str(e)) from e

    rows, cols = surface.shape
    if rows == 0 or cols == 0:
        raise GpuResourceError(
            "create_texture", f"empty surface {surface.shape} cannot be allocated"
        )
    if rows > max_texture_size or cols > max_texture_size:
        raise GpuResourceError(
            "create_texture",
            f"surface {surface.shape} exceeds max texture size {max_texture_size}",
        )
    return surface
