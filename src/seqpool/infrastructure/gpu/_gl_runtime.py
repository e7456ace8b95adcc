"""
OpenGL runtime for seqpool (moderngl).

`GLRuntime` executes the shipped GLSL ES 3.0 shaders on the graphics driver:

- textures are single-channel float32 (`R32F`) textures, one texel per
  element, uploaded as `(rows, cols)` surfaces;
- `compile_program` links the fragment shader with a full-viewport vertex
  shader (`shaders/fullscreen_triangle.glsl`);
- `run_program` renders into a framebuffer wrapping the output texture, one
  fragment per output texel, and waits for the draw to finish.

A desktop context must accept `#version 300 es` sources, i.e. expose
`GL_ARB_ES3_compatibility` (core since OpenGL 4.3; Mesa, including the
llvmpipe software rasterizer, provides it).

Binding validation is shared with `TextureRuntime` (`bind_arguments`), so both
runtimes reject the same mistakes with `GpuResourceError`.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

import moderngl
import numpy as np

from ...domain._errors import GpuResourceError
from ...domain._gpu_runtime import IGpuRuntime, InputBinding, UniformBinding
from ...domain._tensor import ITensor
from ._program import bind_arguments, parse_declarations
from ._runtime import MAX_TEXTURE_SIZE, checked_surface, load_shader

logger = logging.getLogger(__name__)

FULLSCREEN_VERTEX_SHADER = "fullscreen_triangle"

# Clip-space corners of one triangle covering [-1, 1]^2.
_FULLSCREEN_TRIANGLE = np.array([-1.0, -1.0, 3.0, -1.0, -1.0, 3.0], dtype="f4")


class GLTexture:
    """
    A float32 texture owned by a `GLRuntime`.

    Attributes
    ----------
    id : int
        Runtime-unique handle.
    owner : int
        `id()` of the runtime that created the texture.
    handle : moderngl.Texture
        Driver texture; its size is `(cols, rows)`.
    """

    __slots__ = ("id", "owner", "handle", "_shape", "_deleted")

    def __init__(self, tex_id: int, owner: int, handle: Any, shape: tuple) -> None:
        self.id = int(tex_id)
        self.owner = owner
        self.handle = handle
        self._shape = (int(shape[0]), int(shape[1]))
        self._deleted = False

    @property
    def shape(self) -> tuple[int, int]:
        return self._shape

    @property
    def deleted(self) -> bool:
        return self._deleted

    def __repr__(self) -> str:
        state = "deleted" if self._deleted else "live"
        return f"GLTexture(id={self.id}, shape={self.shape}, {state})"


@dataclass(frozen=True)
class GLProgram:
    """
    A linked shader program and the vertex array that draws it.

    Attributes
    ----------
    name : str
        Kernel name from `#pragma kernel(...)`.
    uniforms : Mapping[str, str]
        Uniform name -> declared GLSL type, parsed from the source.
    """

    name: str
    uniforms: Mapping[str, str]
    handle: Any = field(repr=False, compare=False)
    vao: Any = field(repr=False, compare=False)
    owner: int = field(default=0, compare=False)


class GLRuntime(IGpuRuntime):
    """
    Texture-shader runtime backed by an OpenGL context.

    Parameters
    ----------
    ctx : moderngl.Context, optional
        Existing context to render with. Defaults to a new standalone
        (headless) context.
    backend : str, optional
        Standalone context backend passed to moderngl, e.g. "egl" on a
        display-less Linux host. Ignored when `ctx` is given.
    max_texture_size : int, optional
        Largest allowed surface edge, further capped by the driver's
        `GL_MAX_TEXTURE_SIZE`. Defaults to `MAX_TEXTURE_SIZE`.

    Raises
    ------
    GpuResourceError
        If no OpenGL context can be created.
    """

    kind = "gl"

    def __init__(
        self,
        ctx: Optional[moderngl.Context] = None,
        *,
        backend: Optional[str] = None,
        max_texture_size: int = MAX_TEXTURE_SIZE,
    ) -> None:
        if ctx is None:
            kwargs: Dict[str, Any] = {"require": 330}
            if backend:
                kwargs["backend"] = backend
            try:
                ctx = moderngl.create_standalone_context(**kwargs)
            except Exception as e:
                raise GpuResourceError(
                    "create_context", f"no OpenGL context available: {e}"
                ) from e
        self.ctx = ctx

        driver_max = int(ctx.info.get("GL_MAX_TEXTURE_SIZE", max_texture_size))
        self.max_texture_size = min(int(max_texture_size), driver_max)

        self._vertex_source = load_shader(FULLSCREEN_VERTEX_SHADER)
        self._triangle = ctx.buffer(_FULLSCREEN_TRIANGLE.tobytes())
        self._ids = itertools.count(1)
        self._live: Dict[int, GLTexture] = {}
        self.textures_created = 0
        self.programs_compiled = 0
        self.dispatches = 0
        self.reads = 0

        logger.debug(
            "opened OpenGL context: %s (max texture size %d)",
            ctx.info.get("GL_RENDERER", "unknown renderer"),
            self.max_texture_size,
        )

    def __repr__(self) -> str:
        return (
            f"GLRuntime(live_textures={self.live_textures}, "
            f"programs_compiled={self.programs_compiled}, dispatches={self.dispatches})"
        )

    @property
    def live_textures(self) -> int:
        return len(self._live)

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------
    def compile_program(self, source: str) -> GLProgram:
        name, uniforms = parse_declarations(source)
        try:
            handle = self.ctx.program(
                vertex_shader=self._vertex_source, fragment_shader=source
            )
        except moderngl.Error as e:
            raise GpuResourceError("compile_program", f"'{name}': {e}") from e

        vao = self.ctx.vertex_array(handle, [(self._triangle, "2f", "position")])
        self.programs_compiled += 1
        logger.debug("linked GL program '%s' (uniforms=%s)", name, uniforms)
        return GLProgram(
            name=name, uniforms=uniforms, handle=handle, vao=vao, owner=id(self)
        )

    # ------------------------------------------------------------------
    # Textures
    # ------------------------------------------------------------------
    def create_texture(self, data: Any) -> GLTexture:
        surface = checked_surface(data, self.max_texture_size)
        rows, cols = surface.shape
        try:
            handle = self.ctx.texture((cols, rows), 1, data=surface.tobytes(), dtype="f4")
        except moderngl.Error as e:
            raise GpuResourceError("create_texture", str(e)) from e
        handle.filter = (moderngl.NEAREST, moderngl.NEAREST)

        tex = GLTexture(next(self._ids), id(self), handle, surface.shape)
        self._live[tex.id] = tex
        self.textures_created += 1
        logger.debug("created GL texture #%d %s", tex.id, tex.shape)
        return tex

    def _check_texture(self, op: str, texture: GLTexture) -> None:
        if not isinstance(texture, GLTexture) or texture.owner != id(self):
            raise GpuResourceError(op, f"{texture!r} is not owned by this runtime")
        if texture.deleted:
            raise GpuResourceError(op, f"texture #{texture.id} was deleted")

    def read_texture(self, texture: GLTexture) -> np.ndarray:
        self._check_texture("read_texture", texture)
        raw = texture.handle.read()
        self.reads += 1
        return np.frombuffer(raw, dtype=np.float32).reshape(texture.shape).copy()

    def delete_texture(self, texture: GLTexture) -> None:
        self._check_texture("delete_texture", texture)
        texture.handle.release()
        texture._deleted = True
        del self._live[texture.id]
        logger.debug("deleted GL texture #%d", texture.id)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def run_program(
        self,
        program: GLProgram,
        *,
        output: ITensor,
        inputs: Sequence[InputBinding],
        uniforms: Sequence[UniformBinding],
    ) -> None:
        if not isinstance(program, GLProgram) or program.owner != id(self):
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

        rows, cols = target.shape
        fbo = self.ctx.framebuffer(color_attachments=[target.handle])
        try:
            fbo.use()
            self.ctx.viewport = (0, 0, cols, rows)
            for unit, (name, tex) in enumerate(textures.items()):
                tex.handle.use(location=unit)
                self._set_uniform(program, name, unit)
            for name, value in values.items():
                self._set_uniform(program, name, value)
            program.vao.render(moderngl.TRIANGLES, vertices=3)
            self.ctx.finish()
        except moderngl.Error as e:
            raise GpuResourceError("run_program", f"'{program.name}': {e}") from e
        finally:
            fbo.release()

        output.invalidate_host()
        self.dispatches += 1
        logger.debug(
            "rendered '%s' -> GL texture #%d %s", program.name, target.id, target.shape
        )

    @staticmethod
    def _set_uniform(program: GLProgram, name: str, value: Any) -> None:
        # The linker drops uniforms the shader never reads.
        member = program.handle.get(name, None)
        if member is not None:
            member.value = value

    def close(self) -> None:
        """Release every live texture and the context."""
        for tex in list(self._live.values()):
            self.delete_texture(tex)
        self._triangle.release()
        self.ctx.release()
