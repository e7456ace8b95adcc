"""
scripts/bench_global_pool1d_cpu_vs_gpu.py

CPU vs GPU global 1-D pooling microbenchmark (NOT a unit test) for seqpool.

Benchmarks forward-only execution for:
- GlobalMaxPooling1D
- GlobalAveragePooling1D

Timing policy
-------------
- Excludes the host-to-texture upload of the input (performed once per case).
- Excludes the texture-to-host transfer of the GPU result: the GPU layer is
  built with a policy that keeps its output resident.
- The GPU output tensor/texture is allocated by an untimed warmup call.
- `--runtime gl` (default) renders the GLSL shader through OpenGL and waits
  for the draw; `--runtime host` times the NumPy host reference kernel.

Usage
-----
python scripts/bench_global_pool1d_cpu_vs_gpu.py --presets
python scripts/bench_global_pool1d_cpu_vs_gpu.py --steps 512 --features 256 --sanity
python scripts/bench_global_pool1d_cpu_vs_gpu.py --runtime gl --gl-backend egl --presets
"""

from __future__ import annotations

import argparse
import logging
import os
import statistics
import sys
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

# -------------------------
# Make repo_root/src importable
# -------------------------
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from seqpool.domain._gpu_runtime import IGpuRuntime
from seqpool.infrastructure.gpu._runtime import TextureRuntime
from seqpool.infrastructure.pooling._global_pooling_1d import (
    GlobalAveragePooling1D,
    GlobalMaxPooling1D,
)
from seqpool.infrastructure.tensor._tensor import Tensor


def _time_one(fn: Callable[[], None], *, warmup: int, repeats: int) -> list[float]:
    for _ in range(warmup):
        fn()
    ts: list[float] = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        t1 = time.perf_counter()
        ts.append(t1 - t0)
    return ts


def _fmt_seconds(x: float) -> str:
    if x < 1e-6:
        return f"{x*1e9:.2f} ns"
    if x < 1e-3:
        return f"{x*1e6:.2f} us"
    if x < 1:
        return f"{x*1e3:.2f} ms"
    return f"{x:.3f} s"


def _speedup(a: float, b: float) -> float:
    return (a / b) if b > 0 else float("inf")


def _keep_resident(layer) -> bool:
    return False



def _make_runtime(kind: str, gl_backend: str | None) -> IGpuRuntime:
    if kind == "host":
        return TextureRuntime()
    from seqpool.infrastructure.gpu._gl_runtime import GLRuntime

    return GLRuntime(backend=gl_backend)

@dataclass(frozen=True)
class Case:
    name: str
    steps: int
    features: int


def _bench_layer_case(
    *,
    label: str,
    layer_cls: type,
    runtime: IGpuRuntime,
    x_np: np.ndarray,
    warmup: int,
    repeats: int,
    sanity: bool,
) -> None:
    cpu_layer = layer_cls()
    gpu_layer = layer_cls(
        device="gpu:0", runtime=runtime, should_materialize_output=_keep_resident
    )

    x_cpu = Tensor._from_numpy(x_np)
    x_gpu = Tensor._from_numpy(x_np)
    x_gpu.create_texture(runtime)

    try:
        # allocates the cached output outside the timed region
        gpu_layer(x_gpu)

        def cpu_fwd() -> None:
            cpu_layer(x_cpu)

        def gpu_fwd() -> None:
            gpu_layer(x_gpu)

        if sanity:
            y_cpu = cpu_layer(x_cpu).to_numpy()
            y_gpu = gpu_layer(x_gpu)
            y_gpu.transfer_from_texture()
            np.testing.assert_allclose(y_gpu.to_numpy(), y_cpu, rtol=1e-5, atol=1e-5)

        t_cpu = _time_one(cpu_fwd, warmup=warmup, repeats=repeats)
        t_gpu = _time_one(gpu_fwd, warmup=warmup, repeats=repeats)

        cpu_med = statistics.median(t_cpu)
        gpu_med = statistics.median(t_gpu)
        print(
            f"{label:<10} fwd  cpu={_fmt_seconds(cpu_med):>10}  "
            f"gpu={_fmt_seconds(gpu_med):>10}  speedup={_speedup(cpu_med, gpu_med):>7.2f}x"
        )
    finally:
        gpu_layer.release()
        x_gpu.release_texture()


def bench_case(
    case: Case,
    *,
    warmup: int,
    repeats: int,
    sanity: bool,
    rng_seed: int,
    runtime: IGpuRuntime,
) -> None:
    rng = np.random.default_rng(rng_seed)
    x_np = rng.standard_normal((case.steps, case.features)).astype(np.float32)

    print("\n" + "=" * 78)
    print(
        f"{case.name}: steps={case.steps} features={case.features} "
        f"(warmup={warmup}, repeats={repeats})"
    )
    print("-" * 78)

    for label, cls in (
        ("gmaxpool1d", GlobalMaxPooling1D),
        ("gavgpool1d", GlobalAveragePooling1D),
    ):
        _bench_layer_case(
            label=label,
            layer_cls=cls,
            runtime=runtime,
            x_np=x_np,
            warmup=warmup,
            repeats=repeats,
            sanity=sanity,
        )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--steps", type=int, default=128)
    ap.add_argument("--features", type=int, default=64)
    ap.add_argument("--warmup", type=int, default=10)
    ap.add_argument("--repeats", type=int, default=50)
    ap.add_argument("--presets", action="store_true", help="Run a preset suite.")
    ap.add_argument("--big", action="store_true", help="Use larger preset shapes.")
    ap.add_argument(
        "--sanity",
        action="store_true",
        help="Sanity-check CPU vs GPU outputs (not timed).",
    )
    ap.add_argument(
        "--seed", type=int, default=0, help="RNG seed for input generation."
    )
    ap.add_argument(
        "--runtime",
        choices=("gl", "host"),
        default="gl",
        help="GPU runtime: OpenGL shader execution or the host reference.",
    )
    ap.add_argument(
        "--gl-backend", default=None, help="moderngl context backend, e.g. egl."
    )
    ap.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    runtime = _make_runtime(args.runtime, args.gl_backend)
    print(f"runtime: {args.runtime} ({runtime!r})")

    if args.presets:
        if args.big:
            cases = [
                Case("big-1k", 1024, 512),
                Case("big-4k", 4096, 512),
                Case("big-wide", 512, 4096),
            ]
        else:
            cases = [
                Case("tiny", 8, 4),
                Case("text-ish", 64, 128),
                Case("mid", 256, 256),
                Case("long-seq", 2048, 32),
            ]
        for c in cases:
            bench_case(
                c,
                warmup=args.warmup,
                repeats=args.repeats,
                sanity=args.sanity,
                rng_seed=args.seed,
                runtime=runtime,
            )
    else:
        bench_case(
            Case("single", args.steps, args.features),
            warmup=args.warmup,
            repeats=args.repeats,
            sanity=args.sanity,
            rng_seed=args.seed,
            runtime=runtime,
        )

    print(
        f"\nruntime: programs={runtime.programs_compiled} "
        f"textures={runtime.textures_created} dispatches={runtime.dispatches}"
    )
    if args.runtime == "gl":
        runtime.close()


if __name__ == "__main__":
    main()
