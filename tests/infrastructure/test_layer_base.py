import unittest

from seqpool.domain._layer import ILayer
from seqpool.domain.device._device import Device
from seqpool.infrastructure._layer import Layer


class _Identity(Layer):
    def call(self, x):
        return x


class TestLayerBase(unittest.TestCase):
    def test_auto_names_are_per_class_and_increasing(self):
        a = _Identity()
        b = _Identity()
        self.assertEqual(a.layer_class, "_Identity")
        self.assertTrue(a.name.startswith("_identity_"))
        n_a = int(a.name.rsplit("_", 1)[1])
        n_b = int(b.name.rsplit("_", 1)[1])
        self.assertEqual(n_b, n_a + 1)

    def test_explicit_name_is_kept(self):
        self.assertEqual(_Identity(name="head").name, "head")

    def test_device_and_gpu_flag(self):
        self.assertFalse(_Identity().gpu)
        self.assertEqual(_Identity().device, Device("cpu"))
        self.assertTrue(_Identity(device="gpu").gpu)
        layer = _Identity(device=Device("gpu:1"))
        self.assertTrue(layer.gpu)
        self.assertEqual(layer.device.index, 1)

    def test_invalid_device_raises(self):
        with self.assertRaises(ValueError):
            _Identity(device="tpu")

    def test_satisfies_protocol(self):
        self.assertIsInstance(_Identity(), ILayer)

    def test_connect_and_disconnect(self):
        a, b, c = _Identity(), _Identity(), _Identity()
        self.assertEqual(a.outbound, [])

        self.assertIs(a.connect(b), b)
        a.connect(c)
        a.connect(b)
        self.assertEqual(a.outbound, [b, c])

        a.disconnect(b)
        self.assertEqual(a.outbound, [c])
        a.disconnect(b)
        self.assertEqual(a.outbound, [c])

    def test_outbound_is_a_copy(self):
        a, b = _Identity(), _Identity()
        a.outbound.append(b)
        self.assertEqual(a.outbound, [])

    def test_self_connection_rejected(self):
        a = _Identity()
        with self.assertRaises(ValueError):
            a.connect(a)

    def test_call_forwarding(self):
        layer = _Identity()
        self.assertEqual(layer(3), 3)
        self.assertEqual(layer.forward(4), 4)

    def test_base_call_not_implemented(self):
        with self.assertRaises(NotImplementedError):
            Layer()(1)

    def test_config_hooks_not_implemented_by_default(self):
        with self.assertRaises(NotImplementedError):
            _Identity().get_config()
        with self.assertRaises(NotImplementedError):
            _Identity.from_config({})

    def test_repr_mentions_name_and_device(self):
        text = repr(_Identity(name="identity", device="gpu:2"))
        self.assertIn("identity", text)
        self.assertIn("gpu:2", text)


if __name__ == "__main__":
    unittest.main()
