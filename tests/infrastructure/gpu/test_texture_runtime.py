import unittest

import numpy as np

from seqpool.domain._errors import GpuResourceError
from seqpool.domain._gpu_runtime import InputBinding, UniformBinding
from seqpool.infrastructure.gpu._program import register_kernel
from seqpool.infrastructure.gpu._runtime import (
    MAX_TEXTURE_SIZE,
    TextureRuntime,
    load_shader,
)
from seqpool.infrastructure.tensor._tensor import Tensor


@register_kernel("scale_by_factor")
def _scale_by_factor(inputs, uniforms, out_shape):
    return inputs["x"] * np.float32(uniforms["factor"])


_SCALE_SOURCE = """
#version 300 es
#pragma kernel(scale_by_factor)
precision highp float;
uniform sampler2D x;
uniform float factor;
out vec4 outColor;
void main() {}
"""


class TestProgramCompilation(unittest.TestCase):
    def setUp(self) -> None:
        self.runtime = TextureRuntime()

    def test_compile_pooling_shader(self):
        program = self.runtime.compile_program(load_shader("global_pooling_1d"))
        self.assertEqual(program.name, "global_pooling_1d")
        self.assertEqual(
            dict(program.uniforms),
            {"x": "sampler2D", "channelDataSize": "int", "isMaxPooling": "bool"},
        )
        self.assertEqual(program.samplers, {"x": "sampler2D"})
        self.assertEqual(self.runtime.programs_compiled, 1)

    def test_missing_version_header(self):
        src = "#pragma kernel(global_pooling_1d)\nuniform sampler2D x;\n"
        with self.assertRaises(GpuResourceError):
            self.runtime.compile_program(src)

    def test_unknown_kernel(self):
        src = "#version 300 es\n#pragma kernel(does_not_exist)\n"
        with self.assertRaises(GpuResourceError):
            self.runtime.compile_program(src)

    def test_missing_or_duplicate_pragma(self):
        for src in (
            "#version 300 es\nuniform sampler2D x;\n",
            "#version 300 es\n#pragma kernel(scale_by_factor)\n"
            "#pragma kernel(scale_by_factor)\n",
        ):
            with self.subTest(src=src):
                with self.assertRaises(GpuResourceError):
                    self.runtime.compile_program(src)

    def test_unsupported_or_duplicate_uniform(self):
        for decl in ("uniform vec4 color;", "uniform int a;\nuniform float a;"):
            src = f"#version 300 es\n#pragma kernel(scale_by_factor)\n{decl}\n"
            with self.subTest(decl=decl):
                with self.assertRaises(GpuResourceError):
                    self.runtime.compile_program(src)

    def test_failed_compile_is_not_counted(self):
        with self.assertRaises(GpuResourceError):
            self.runtime.compile_program("void main() {}")
        self.assertEqual(self.runtime.programs_compiled, 0)

    def test_load_shader_missing(self):
        with self.assertRaises(FileNotFoundError):
            load_shader("no_such_shader")


class TestTextures(unittest.TestCase):
    def setUp(self) -> None:
        self.runtime = TextureRuntime(max_texture_size=8)

    def test_create_read_delete(self):
        data = np.arange(6, dtype=np.float32).reshape(2, 3)
        tex = self.runtime.create_texture(data)
        self.assertEqual(tex.shape, (2, 3))
        self.assertEqual(self.runtime.textures_created, 1)
        self.assertEqual(self.runtime.live_textures, 1)

        out = self.runtime.read_texture(tex)
        self.assertTrue(np.array_equal(out, data))
        out[0, 0] = 99.0
        self.assertEqual(self.runtime.read_texture(tex)[0, 0], 0.0)

        self.runtime.delete_texture(tex)
        self.assertTrue(tex.deleted)
        self.assertEqual(self.runtime.live_textures, 0)
        self.assertEqual(self.runtime.textures_created, 1)

    def test_texture_ids_are_unique(self):
        a = self.runtime.create_texture(np.zeros((1, 1)))
        b = self.runtime.create_texture(np.zeros((1, 1)))
        self.assertNotEqual(a.id, b.id)

    def test_upload_is_a_copy(self):
        data = np.ones((2, 2), dtype=np.float32)
        tex = self.runtime.create_texture(data)
        data[...] = 5.0
        self.assertTrue(np.array_equal(self.runtime.read_texture(tex), np.ones((2, 2))))

    def test_limits(self):
        for bad in (np.zeros((9, 1)), np.zeros((1, 9)), np.zeros((0,)), np.zeros((2, 2, 2))):
            with self.subTest(shape=bad.shape):
                with self.assertRaises(GpuResourceError):
                    self.runtime.create_texture(bad)
        self.assertEqual(self.runtime.textures_created, 0)

    def test_default_max_size(self):
        self.assertEqual(TextureRuntime().max_texture_size, MAX_TEXTURE_SIZE)

    def test_deleted_texture_is_unusable(self):
        tex = self.runtime.create_texture(np.zeros((1, 2)))
        self.runtime.delete_texture(tex)
        with self.assertRaises(GpuResourceError):
            self.runtime.read_texture(tex)
        with self.assertRaises(GpuResourceError):
            self.runtime.delete_texture(tex)

    def test_foreign_texture_rejected(self):
        other = TextureRuntime()
        tex = other.create_texture(np.zeros((1, 2)))
        with self.assertRaises(GpuResourceError):
            self.runtime.read_texture(tex)


class TestDispatch(unittest.TestCase):
    def setUp(self) -> None:
        np.random.seed(0)
        self.runtime = TextureRuntime()
        self.program = self.runtime.compile_program(load_shader("global_pooling_1d"))
        self.x_np = np.random.randn(4, 3).astype(np.float32)
        self.x = Tensor._from_numpy(self.x_np)
        self.x.create_texture(self.runtime)
        self.out = Tensor((3,))
        self.out.create_texture(self.runtime)

    def _run(self, *, inputs=None, uniforms=None, program=None, output=None):
        self.runtime.run_program(
            program or self.program,
            output=output or self.out,
            inputs=(
                inputs
                if inputs is not None
                else [InputBinding(self.x.texture, "2d", "x")]
            ),
            uniforms=(
                uniforms
                if uniforms is not None
                else [
                    UniformBinding(4, "int", "channelDataSize"),
                    UniformBinding(True, "bool", "isMaxPooling"),
                ]
            ),
        )

    def test_max_dispatch_writes_texture_and_invalidates_host(self):
        self._run()
        self.assertEqual(self.runtime.dispatches, 1)
        self.assertFalse(self.out.host_valid)

        self.out.transfer_from_texture()
        np.testing.assert_allclose(self.out.to_numpy(), self.x_np.max(axis=0))

    def test_average_dispatch(self):
        self._run(
            uniforms=[
                UniformBinding(4, "int", "channelDataSize"),
                UniformBinding(False, "bool", "isMaxPooling"),
            ]
        )
        self.out.transfer_from_texture()
        np.testing.assert_allclose(
            self.out.to_numpy(), self.x_np.mean(axis=0), rtol=1e-5, atol=1e-6
        )

    def test_channel_data_size_limits_rows(self):
        self._run(
            uniforms=[
                UniformBinding(2, "int", "channelDataSize"),
                UniformBinding(True, "bool", "isMaxPooling"),
            ]
        )
        self.out.transfer_from_texture()
        np.testing.assert_allclose(self.out.to_numpy(), self.x_np[:2].max(axis=0))

    def test_uniform_type_mismatch(self):
        with self.assertRaises(GpuResourceError):
            self._run(
                uniforms=[
                    UniformBinding(4.0, "float", "channelDataSize"),
                    UniformBinding(True, "bool", "isMaxPooling"),
                ]
            )
        self.assertEqual(self.runtime.dispatches, 0)
        self.assertTrue(self.out.host_valid)

    def test_missing_and_unknown_uniforms(self):
        for uniforms in (
            [UniformBinding(4, "int", "channelDataSize")],
            [
                UniformBinding(4, "int", "channelDataSize"),
                UniformBinding(True, "bool", "isMaxPooling"),
                UniformBinding(1, "int", "extra"),
            ],
        ):
            with self.subTest(uniforms=uniforms):
                with self.assertRaises(GpuResourceError):
                    self._run(uniforms=uniforms)

    def test_input_binding_errors(self):
        for inputs in (
            [],
            [InputBinding(self.x.texture, "2d", "y")],
            [InputBinding(self.x.texture, "3d", "x")],
        ):
            with self.subTest(inputs=inputs):
                with self.assertRaises(GpuResourceError):
                    self._run(inputs=inputs)

    def test_output_without_texture(self):
        with self.assertRaises(GpuResourceError):
            self._run(output=Tensor((3,)))

    def test_program_from_other_runtime(self):
        other = TextureRuntime().compile_program(load_shader("global_pooling_1d"))
        with self.assertRaises(GpuResourceError):
            self._run(program=other)

    def test_channel_data_size_out_of_range(self):
        for n in (0, 5):
            with self.subTest(n=n):
                with self.assertRaises(GpuResourceError):
                    self._run(
                        uniforms=[
                            UniformBinding(n, "int", "channelDataSize"),
                            UniformBinding(True, "bool", "isMaxPooling"),
                        ]
                    )

    def test_output_width_mismatch(self):
        wide = Tensor((5,))
        wide.create_texture(self.runtime)
        with self.assertRaises(GpuResourceError):
            self._run(output=wide)

    def test_registered_custom_kernel(self):
        program = self.runtime.compile_program(_SCALE_SOURCE)
        out = Tensor((4, 3))
        out.create_texture(self.runtime)
        self.runtime.run_program(
            program,
            output=out,
            inputs=[InputBinding(self.x.texture, "2d", "x")],
            uniforms=[UniformBinding(2.5, "float", "factor")],
        )
        out.transfer_from_texture()
        np.testing.assert_allclose(out.to_numpy(), self.x_np * 2.5, rtol=1e-6)


if __name__ == "__main__":
    unittest.main()
