import os
import unittest
from unittest import mock

from seqpool.infrastructure.gpu._default import (
    GPU_RUNTIME_ENV,
    get_default_runtime,
    runtime_kind_from_env,
)
from seqpool.infrastructure.gpu._runtime import TextureRuntime
from seqpool.infrastructure.pooling._global_pooling_1d import GlobalMaxPooling1D


class TestDefaultRuntime(unittest.TestCase):
    def setUp(self) -> None:
        get_default_runtime.cache_clear()
        self.addCleanup(get_default_runtime.cache_clear)

    def test_kind_defaults_to_gl(self):
        env = {k: v for k, v in os.environ.items() if k != GPU_RUNTIME_ENV}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(runtime_kind_from_env(), "gl")

    def test_kind_is_normalized(self):
        with mock.patch.dict(os.environ, {GPU_RUNTIME_ENV: " Host "}):
            self.assertEqual(runtime_kind_from_env(), "host")

    def test_unknown_kind_raises(self):
        with mock.patch.dict(os.environ, {GPU_RUNTIME_ENV: "vulkan"}):
            with self.assertRaises(ValueError):
                runtime_kind_from_env()
            with self.assertRaises(ValueError):
                get_default_runtime()

    def test_host_kind_is_cached(self):
        with mock.patch.dict(os.environ, {GPU_RUNTIME_ENV: "host"}):
            runtime = get_default_runtime()
            self.assertIsInstance(runtime, TextureRuntime)
            self.assertIs(get_default_runtime(), runtime)

    def test_gpu_layer_without_runtime_uses_default(self):
        with mock.patch.dict(os.environ, {GPU_RUNTIME_ENV: "host"}):
            layer = GlobalMaxPooling1D(device="gpu")
            self.assertIs(layer.runtime, get_default_runtime())
            self.assertEqual(layer.runtime.programs_compiled, 1)


if __name__ == "__main__":
    unittest.main()
