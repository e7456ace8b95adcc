from __future__ import annotations

import json
from typing import Any, Callable, Optional, Type

_LAYER_REGISTRY: dict[str, Type[Any]] = {}


def register_layer(name: Optional[str] = None) -> Callable[[Type[Any]], Type[Any]]:
    """
    Decorator to register a Layer class for JSON deserialization.
    """

    def deco(cls: Type[Any]) -> Type[Any]:
        key = name or cls.__name__
        _LAYER_REGISTRY[key] = cls
        return cls

    return deco


def layer_to_config(layer: Any) -> dict[str, Any]:
    """
    Convert a Layer into a JSON-serializable configuration node.

    Node format
    -----------
    {
      "type": "GlobalMaxPooling1D",
      "config": {...}
    }
    """
    type_name = layer.__class__.__name__

    get_cfg = getattr(layer, "get_config", None)
    cfg = get_cfg() if callable(get_cfg) else {}

    return {"type": type_name, "config": cfg}


def layer_from_config(node: dict[str, Any]) -> Any:
    """
    Rebuild a Layer from a configuration node.
    """
    type_name = str(node["type"])
    if type_name not in _LAYER_REGISTRY:
        raise ValueError(
            f"Unknown layer type '{type_name}'. " f"Register it via @register_layer."
        )

    cls = _LAYER_REGISTRY[type_name]
    cfg = node.get("config", {}) or {}

    from_cfg = getattr(cls, "from_config", None)
    if callable(from_cfg):
        return from_cfg(cfg)
    return cls(**cfg)


def layer_to_json(layer: Any) -> str:
    """Serialize a layer's configuration node to a JSON string."""
    return json.dumps(layer_to_config(layer), sort_keys=True)


def layer_from_json(text: str) -> Any:
    """Rebuild a layer from `layer_to_json` output."""
    return layer_from_config(json.loads(text))
