"""
Device abstraction contracts for seqpool.

This module defines a duck-typed `DeviceLike` protocol that represents a
computation device descriptor (CPU or GPU) without coupling to the concrete
`Device` class.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class DeviceLike(Protocol):
    """
    Duck-typed device contract.

    Any object that provides these members can be used as a computation device
    descriptor, regardless of its concrete class identity.
    """

    type: object
    index: Optional[int]

    def is_cpu(self) -> bool: ...
    def is_gpu(self) -> bool: ...
    def __str__(self) -> str: ...
