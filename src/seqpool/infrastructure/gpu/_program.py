"""
Shader programs, binding validation and the host-kernel registry.

Every runtime compiles the same GLSL ES 3.0 fragment shaders. Compilation
first validates the source header and parses its `uniform` declarations
(`parse_declarations`); those declarations are the binding contract that
`bind_arguments` enforces at dispatch time, whichever runtime executes the
shader.

- `GLRuntime` hands the source to the OpenGL driver.
- `TextureRuntime` runs the host kernel registered under the name the shader
  declares with `#pragma kernel(<name>)`. GL drivers ignore the pragma.

Kernel signature
----------------
    kernel(inputs, uniforms, out_shape) -> np.ndarray

- `inputs`    : mapping of sampler name -> 2-D float32 surface
- `uniforms`  : mapping of uniform name -> Python scalar
- `out_shape` : (rows, cols) of the output surface
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import GpuResourceError
from ...domain._gpu_runtime import InputBinding, ITexture, UniformBinding

HostKernel = Callable[[Mapping[str, np.ndarray], Mapping[str, Any], tuple], np.ndarray]

_KERNEL_REGISTRY: Dict[str, HostKernel] = {}

_VERSION_RE = re.compile(r"^\s*#version\s+300\s+es\s*$")
_PRAGMA_RE = re.compile(r"^\s*#pragma\s+kernel\((\w+)\)\s*$", re.MULTILINE)
_UNIFORM_RE = re.compile(
    r"^\s*uniform\s+(?:(?:lowp|mediump|highp)\s+)?(\w+)\s+(\w+)\s*;", re.MULTILINE
)

SAMPLER_TYPES = frozenset({"sampler2D"})
SCALAR_TYPES = frozenset({"int", "float", "bool"})

_UNIFORM_CASTS = {
    "int": int,
    "float": lambda v: float(np.float32(v)),
    "bool": bool,
}


def register_kernel(name: Optional[str] = None) -> Callable[[HostKernel], HostKernel]:
    """
    Decorator to register a host kernel under a shader kernel name.
    """

    def deco(fn: HostKernel) -> HostKernel:
        key = name or fn.__name__
        _KERNEL_REGISTRY[key] = fn
        return fn

    return deco


def get_kernel(name: str) -> HostKernel:
    try:
        return _KERNEL_REGISTRY[name]
    except KeyError:
        raise GpuResourceError(
            "compile_program", f"no host kernel registered for '{name}'"
        ) from None


def parse_declarations(source: str) -> Tuple[str, Dict[str, str]]:
    """
    Validate a shader header and collect its uniform declarations.

    Returns
    -------
    (str, dict)
        Kernel name from `#pragma kernel(...)` and uniform name -> GLSL type,
        in declaration order.

    Raises
    ------
    GpuResourceError
        If the `#version 300 es` header or the kernel pragma is missing, a
        uniform has an unsupported type, or a uniform is declared twice.
    """
    lines = [ln for ln in source.splitlines() if ln.strip()]
    if not lines or not _VERSION_RE.match(lines[0]):
        raise GpuResourceError(
            "compile_program", "source must start with '#version 300 es'"
        )

    pragmas = _PRAGMA_RE.findall(source)
    if len(pragmas) != 1:
        raise GpuResourceError(
            "compile_program",
            f"expected exactly one '#pragma kernel(<name>)', found {len(pragmas)}",
        )

    uniforms: Dict[str, str] = {}
    for utype, uname in _UNIFORM_RE.findall(source):
        if utype not in SAMPLER_TYPES and utype not in SCALAR_TYPES:
            raise GpuResourceError(
                "compile_program", f"unsupported uniform type '{utype}' for '{uname}'"
            )
        if uname in uniforms:
            raise GpuResourceError(
                "compile_program", f"uniform '{uname}' declared twice"
            )
        uniforms[uname] = utype
    return pragmas[0], uniforms


def _samplers(uniforms: Mapping[str, str]) -> Dict[str, str]:
    return {k: v for k, v in uniforms.items() if v in SAMPLER_TYPES}


def _scalars(uniforms: Mapping[str, str]) -> Dict[str, str]:
    return {k: v for k, v in uniforms.items() if v not in SAMPLER_TYPES}


def bind_arguments(
    name: str,
    uniforms: Mapping[str, str],
    inputs: Sequence[InputBinding],
    values: Sequence[UniformBinding],
    check_texture: Callable[[str, ITexture], None],
) -> Tuple[Dict[str, ITexture], Dict[str, Any]]:
    """
    Match dispatch bindings against a program's declared uniforms.

    Every sampler must be bound to a live `"2d"` texture and every scalar
    uniform to a value of its declared type; nothing undeclared may be bound.

    Returns
    -------
    (dict, dict)
        Sampler name -> texture, and scalar name -> value cast to the
        declared type.

    Raises
    ------
    GpuResourceError
        On any unknown, mistyped or missing binding.
    """
    samplers = _samplers(uniforms)
    bound_inputs: Dict[str, ITexture] = {}
    for b in inputs:
        if b.name not in samplers:
            raise GpuResourceError(
                "run_program", f"'{b.name}' is not a sampler of '{name}'"
            )
        if b.type != "2d":
            raise GpuResourceError(
                "run_program",
                f"input '{b.name}' bound as '{b.type}', declared '{samplers[b.name]}'",
            )
        check_texture("run_program", b.texture)
        bound_inputs[b.name] = b.texture
    missing = set(samplers) - set(bound_inputs)
    if missing:
        raise GpuResourceError("run_program", f"unbound samplers {sorted(missing)}")

    scalars = _scalars(uniforms)
    bound_values: Dict[str, Any] = {}
    for u in values:
        declared = scalars.get(u.name)
        if declared is None:
            raise GpuResourceError(
                "run_program", f"'{u.name}' is not a uniform of '{name}'"
            )
        if declared != u.type:
            raise GpuResourceError(
                "run_program",
                f"uniform '{u.name}' bound as '{u.type}', declared '{declared}'",
            )
        bound_values[u.name] = _UNIFORM_CASTS[declared](u.value)
    missing = set(scalars) - set(bound_values)
    if missing:
        raise GpuResourceError("run_program", f"unbound uniforms {sorted(missing)}")

    return bound_inputs, bound_values


@dataclass(frozen=True)
class ShaderProgram:
    """
    A program compiled by the host runtime.

    Attributes
    ----------
    name : str
        Kernel name from `#pragma kernel(...)`.
    uniforms : Mapping[str, str]
        Uniform name -> declared GLSL type, in declaration order.
    owner : int
        `id()` of the runtime that compiled the program.
    """

    name: str
    uniforms: Mapping[str, str]
    source: str = field(repr=False)
    kernel: HostKernel = field(repr=False, compare=False)
    owner: int = field(default=0, compare=False)

    @property
    def samplers(self) -> Dict[str, str]:
        return _samplers(self.uniforms)

    @property
    def scalars(self) -> Dict[str, str]:
        return _scalars(self.uniforms)


def parse_program(source: str, *, owner: int = 0) -> ShaderProgram:
    """
    Validate shader source and bind it to its registered host kernel.

    Raises
    ------
    GpuResourceError
        If `parse_declarations` rejects the source or the kernel has no
        registered host implementation.
    """
    name, uniforms = parse_declarations(source)
    return ShaderProgram(
        name=name,
        uniforms=uniforms,
        source=source,
        kernel=get_kernel(name),
        owner=owner,
    )
