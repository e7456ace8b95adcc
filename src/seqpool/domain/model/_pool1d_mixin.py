"""
Configuration mixins for global 1-D pooling layers.

This module defines `GlobalPool1dConfigMixin`, a lightweight mixin that
provides JSON-serializable configuration hooks for global pooling layers
(e.g., GlobalMaxPooling1D, GlobalAveragePooling1D).

Design notes
------------
- Assumes the host class defines `name`, `data_format` and `device`
  attributes or properties.
- The pooling mode is a property of the concrete class, so it is not part of
  the configuration.
- Uses plain Python types (strings) to ensure JSON compatibility.
"""

from typing import Any, Dict

from typing_extensions import Self


class GlobalPool1dConfigMixin:
    """
    Mixin providing JSON serialization hooks for global 1-D pooling layers.

    This mixin assumes the host class exposes the following attributes
    or properties:
    - name        : str
    - data_format : DataFormat
    - device      : Device
    """

    # ---------------------------------------------------------------------
    # JSON serialization
    # ---------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return JSON-serializable configuration for this pooling layer.
        """
        return {
            "name": str(self.name),
            "data_format": self.data_format.value,
            "device": str(self.device),
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct the pooling layer from a JSON configuration dict.

        Missing keys fall back to the constructor defaults.
        """
        return cls(
            data_format=cfg.get("data_format", "channels_last"),
            name=cfg.get("name"),
            device=cfg.get("device", "cpu"),
        )
