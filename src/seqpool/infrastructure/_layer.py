"""
Infrastructure layer base class.

This module provides a concrete `Layer` implementation that satisfies the
domain-level `ILayer` protocol. It implements the conveniences shared by
inference layers:

- name and class tagging (`name`, `layer_class`)
- device placement and the derived GPU-capability flag (`gpu`)
- downstream wiring (`outbound`, `connect`) used by GPU layers to decide
  whether results must be transferred back to host memory
- `__call__` forwarding to `call` for ergonomic invocation
- opt-in JSON configuration hooks (`get_config` / `from_config`)
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Any, DefaultDict, Dict, Iterator, List, Optional, Union

from ..domain._layer import ILayer
from ..domain.device._device import Device

_NAME_COUNTERS: DefaultDict[str, Iterator[int]] = defaultdict(
    lambda: itertools.count(1)
)


def _auto_name(layer_class: str) -> str:
    return f"{layer_class.lower()}_{next(_NAME_COUNTERS[layer_class])}"


class Layer(ILayer):
    """
    Infrastructure base class for inference layers.

    Parameters
    ----------
    name : str, optional
        Layer name. Defaults to `<layer_class>_<n>` with a per-class counter.
    device : Device or str, optional
        Placement. A GPU device (`"gpu"`, `"gpu:<index>"`) makes the layer
        GPU-capable. Defaults to "cpu".

    Attributes
    ----------
    layer_class : str
        Class tag; subclasses overwrite it in their constructor.
    """

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        device: Union[Device, str] = "cpu",
    ) -> None:
        self.layer_class = type(self).__name__
        self.name = name if name else _auto_name(self.layer_class)
        self._device = Device.coerce(device)
        self._outbound: List[ILayer] = []

    def __repr__(self) -> str:
        return f"{self.layer_class}(name={self.name!r}, device={self._device})"

    @property
    def device(self) -> Device:
        return self._device

    @property
    def gpu(self) -> bool:
        """Whether the layer executes through the GPU runtime."""
        return self._device.is_gpu()

    @property
    def outbound(self) -> List[ILayer]:
        """Downstream layers consuming this layer's output (read-only view)."""
        return list(self._outbound)

    def connect(self, downstream: ILayer) -> ILayer:
        """
        Register `downstream` as a consumer of this layer's output.

        Returns
        -------
        ILayer
            `downstream`, so calls can be chained.
        """
        if downstream is self:
            raise ValueError(f"{self.name} cannot consume its own output.")
        if downstream not in self._outbound:
            self._outbound.append(downstream)
        return downstream

    def disconnect(self, downstream: ILayer) -> None:
        """Remove `downstream` from this layer's consumers, if present."""
        if downstream in self._outbound:
            self._outbound.remove(downstream)

    def call(self, x):
        """
        Execute the computation of the layer.

        Subclasses must implement this.
        """
        raise NotImplementedError

    def forward(self, x):
        """Alias of `call`."""
        return self.call(x)

    def __call__(self, x):
        """
        Call the layer as a function, delegating to `call`.
        """
        return self.call(x)

    # ------------------------------------------------------------------
    # Serialization hooks (opt-in contract)
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration for this layer.

        Raises
        ------
        NotImplementedError
            If the layer does not support JSON serialization.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement get_config(). "
            "This layer cannot be serialized to JSON."
        )

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Layer":
        """
        Reconstruct a layer from a JSON configuration.

        Raises
        ------
        NotImplementedError
            If the layer does not support JSON deserialization.
        """
        raise NotImplementedError(
            f"{cls.__name__} does not implement from_config(). "
            "This layer cannot be deserialized from JSON."
        )
