from ._serialization_core import (
    layer_from_config,
    layer_from_json,
    layer_to_config,
    layer_to_json,
    register_layer,
)

__all__ = [
    layer_from_config.__name__,
    layer_from_json.__name__,
    layer_to_config.__name__,
    layer_to_json.__name__,
    register_layer.__name__,
]
