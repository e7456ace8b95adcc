import json
import os
import unittest
import warnings
from unittest import mock

import numpy as np

from seqpool.domain._pooling import DataFormat, PoolingMode
from seqpool.domain.device._device import Device
from seqpool.infrastructure.gpu._default import GPU_RUNTIME_ENV, get_default_runtime
from seqpool.infrastructure.gpu._runtime import TextureRuntime
from seqpool.infrastructure.module._serialization_core import (
    layer_from_config,
    layer_from_json,
    layer_to_config,
    layer_to_json,
    register_layer,
)
from seqpool.infrastructure.pooling._global_pooling_1d import (
    GlobalAveragePooling1D,
    GlobalMaxPooling1D,
)
from seqpool.infrastructure.tensor._tensor import Tensor


class TestPoolingConfig(unittest.TestCase):
    def test_get_config_contents(self):
        layer = GlobalAveragePooling1D(name="gap")
        self.assertEqual(
            layer.get_config(),
            {"name": "gap", "data_format": "channels_last", "device": "cpu"},
        )

    def test_config_node_format(self):
        node = layer_to_config(GlobalMaxPooling1D(name="gmp"))
        self.assertEqual(node["type"], "GlobalMaxPooling1D")
        self.assertEqual(node["config"]["name"], "gmp")
        json.dumps(node)

    def test_round_trip_preserves_class_and_config(self):
        for cls, mode in (
            (GlobalMaxPooling1D, PoolingMode.MAX),
            (GlobalAveragePooling1D, PoolingMode.AVERAGE),
        ):
            with self.subTest(cls=cls.__name__):
                rebuilt = layer_from_config(layer_to_config(cls(name="p")))
                self.assertIsInstance(rebuilt, cls)
                self.assertEqual(rebuilt.name, "p")
                self.assertIs(rebuilt.pooling, mode)
                self.assertIs(rebuilt.data_format, DataFormat.CHANNELS_LAST)

    def test_json_round_trip(self):
        text = layer_to_json(GlobalMaxPooling1D(name="head"))
        self.assertEqual(json.loads(text)["type"], "GlobalMaxPooling1D")

        rebuilt = layer_from_json(text)
        y = rebuilt(Tensor._from_numpy(np.array([[1, 2], [3, 0]], np.float32)))
        self.assertTrue(np.array_equal(y.to_numpy(), [3.0, 2.0]))

    def test_channels_first_round_trip_warns_again(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            layer = GlobalMaxPooling1D("channels_first")
            rebuilt = layer_from_json(layer_to_json(layer))
        self.assertIs(rebuilt.data_format, DataFormat.CHANNELS_FIRST)
        self.assertEqual(
            sum(issubclass(w.category, RuntimeWarning) for w in caught), 2
        )

    def test_gpu_device_is_serialized(self):
        layer = GlobalMaxPooling1D(device="gpu:0", runtime=TextureRuntime())
        node = layer_to_config(layer)
        self.assertEqual(node["config"]["device"], "gpu:0")

        # the rebuilt layer compiles on the default runtime
        get_default_runtime.cache_clear()
        self.addCleanup(get_default_runtime.cache_clear)
        with mock.patch.dict(os.environ, {GPU_RUNTIME_ENV: "host"}):
            rebuilt = layer_from_config(node)
        self.assertTrue(rebuilt.gpu)
        self.assertEqual(rebuilt.device, Device("gpu:0"))
        self.assertEqual(rebuilt.backend, "gpu")

    def test_missing_keys_use_defaults(self):
        rebuilt = layer_from_config({"type": "GlobalAveragePooling1D"})
        self.assertIs(rebuilt.data_format, DataFormat.CHANNELS_LAST)
        self.assertFalse(rebuilt.gpu)
        self.assertTrue(rebuilt.name)

    def test_unknown_type_raises(self):
        with self.assertRaises(ValueError):
            layer_from_config({"type": "GlobalMinPooling1D", "config": {}})

    def test_registered_class_without_from_config(self):
        @register_layer("PlainLayer")
        class _Plain:
            def __init__(self, size=1):
                self.size = size

        rebuilt = layer_from_config({"type": "PlainLayer", "config": {"size": 3}})
        self.assertIsInstance(rebuilt, _Plain)
        self.assertEqual(rebuilt.size, 3)


if __name__ == "__main__":
    unittest.main()
