"""
Placement descriptors for pooling layers and tensors.

A placement is either the host (`"cpu"`) or a texture-shader GPU
(`"gpu"` / `"gpu:<n>"`). Layers read it once, at construction, to pick their
execution strategy; tensors carry it so a layer's output records where it
was produced.

`Device.coerce` is the single entry point used by constructors that accept
either a `Device` or its string form.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Union


class DeviceType(Enum):
    """Placement category: host NumPy or texture-shader GPU."""

    CPU = "cpu"
    GPU = "gpu"


_DEVICE_RE = re.compile(r"^(?P<kind>cpu|gpu)(?::(?P<index>\d+))?$")


class Device:
    """
    Immutable placement descriptor.

    Parameters
    ----------
    device : str
        `"cpu"`, `"gpu"` or `"gpu:<n>"`. Surrounding whitespace and letter
        case are ignored; a bare `"gpu"` means `"gpu:0"`.

    Raises
    ------
    ValueError
        If the string names no supported placement, or gives an index to
        `"cpu"`.
    """

    __slots__ = ("type", "index")

    type: DeviceType
    index: Optional[int]

    def __init__(self, device: str) -> None:
        m = _DEVICE_RE.match(str(device).strip().lower())
        if m is None:
            raise ValueError(
                f"Invalid device '{device}'. Expected 'cpu', 'gpu' or 'gpu:<index>'"
            )
        kind, index = DeviceType(m.group("kind")), m.group("index")
        if kind is DeviceType.CPU and index is not None:
            raise ValueError(f"Invalid device '{device}': the host has no index")

        object.__setattr__(self, "type", kind)
        object.__setattr__(
            self, "index", None if kind is DeviceType.CPU else int(index or 0)
        )

    @classmethod
    def coerce(cls, device: Union["Device", str]) -> "Device":
        """Return `device` unchanged if it is a `Device`, else parse it."""
        return device if isinstance(device, Device) else cls(device)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Device is immutable")

    def __str__(self) -> str:
        if self.type is DeviceType.CPU:
            return "cpu"
        return f"gpu:{self.index}"

    def __repr__(self) -> str:
        return f"Device('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return (self.type, self.index) == (other.type, other.index)

    def __hash__(self) -> int:
        return hash((self.type, self.index))

    def is_cpu(self) -> bool:
        return self.type is DeviceType.CPU

    def is_gpu(self) -> bool:
        """Whether work placed here runs through a GPU runtime."""
        return self.type is DeviceType.GPU
