import unittest

from seqpool.domain._errors import (
    DataFormatError,
    GpuResourceError,
    ShapeMismatchError,
)
from seqpool.domain._pooling import DataFormat, PoolingMode
from seqpool.domain.device._device import Device, DeviceType


class TestDevice(unittest.TestCase):
    def test_cpu(self):
        d = Device("cpu")
        self.assertIs(d.type, DeviceType.CPU)
        self.assertIsNone(d.index)
        self.assertTrue(d.is_cpu())
        self.assertFalse(d.is_gpu())
        self.assertEqual(str(d), "cpu")

    def test_gpu_alias_defaults_to_index_zero(self):
        self.assertEqual(Device("gpu"), Device("gpu:0"))
        self.assertEqual(str(Device("gpu")), "gpu:0")

    def test_gpu_index(self):
        d = Device("gpu:3")
        self.assertTrue(d.is_gpu())
        self.assertEqual(d.index, 3)
        self.assertEqual(repr(d), "Device('gpu:3')")

    def test_hashable(self):
        self.assertEqual(len({Device("gpu:0"), Device("gpu"), Device("cpu")}), 2)

    def test_invalid_strings_raise(self):
        for bad in ("cuda:0", "gpu:-1", "cpu:0", "", "gpu:x", "gpu:"):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    Device(bad)

    def test_case_and_whitespace_are_normalized(self):
        self.assertEqual(Device(" GPU:2 "), Device("gpu:2"))
        self.assertEqual(str(Device("CPU")), "cpu")

    def test_coerce(self):
        d = Device("gpu:1")
        self.assertIs(Device.coerce(d), d)
        self.assertEqual(Device.coerce("gpu:1"), d)
        with self.assertRaises(ValueError):
            Device.coerce("tpu")

    def test_immutable(self):
        d = Device("gpu:0")
        with self.assertRaises(AttributeError):
            d.index = 1
        self.assertEqual(d.index, 0)


class TestPoolingEnums(unittest.TestCase):
    def test_data_format_parse(self):
        self.assertIs(DataFormat.parse("channels_last"), DataFormat.CHANNELS_LAST)
        self.assertIs(DataFormat.parse("channels_first"), DataFormat.CHANNELS_FIRST)
        self.assertIs(
            DataFormat.parse(DataFormat.CHANNELS_FIRST), DataFormat.CHANNELS_FIRST
        )

    def test_data_format_parse_rejects_unknown(self):
        with self.assertRaises(DataFormatError) as cm:
            DataFormat.parse("nhwc")
        self.assertEqual(cm.exception.value, "nhwc")
        self.assertIsInstance(cm.exception, ValueError)

    def test_pooling_mode_values(self):
        self.assertIs(PoolingMode("max"), PoolingMode.MAX)
        self.assertIs(PoolingMode("average"), PoolingMode.AVERAGE)


class TestErrors(unittest.TestCase):
    def test_shape_mismatch_carries_shapes(self):
        e = ShapeMismatchError("(steps, 4)", (3, 5))
        self.assertEqual(e.actual, (3, 5))
        self.assertEqual(e.expected, "(steps, 4)")
        self.assertIn("(3, 5)", str(e))

    def test_gpu_resource_error_is_runtime_error(self):
        e = GpuResourceError("run_program", "boom")
        self.assertIsInstance(e, RuntimeError)
        self.assertEqual(e.op, "run_program")
        self.assertIn("boom", str(e))


if __name__ == "__main__":
    unittest.main()
