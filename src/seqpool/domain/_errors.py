"""
Execution-related exceptions for seqpool.

This module defines the error taxonomy shared by the tensor, GPU runtime and
pooling layers. Every error subclasses a builtin exception type so callers may
catch either the precise class or its broad builtin parent.

Taxonomy
--------
- `ShapeMismatchError`          : input rank/dimensions inconsistent with the
                                  operator's contract.
- `GpuResourceError`            : program compilation, texture or dispatch
                                  failure. Fatal, never retried.
- `HostBufferUnavailableError`  : host read of a tensor whose valid data lives
                                  only in its GPU texture.
- `DataFormatError`             : unknown data-format tag.
- `DeviceNotSupportedError`     : GPU operation requested without a GPU runtime.

NaN/Inf values flowing through a reduction are not errors; they propagate
according to the reduction primitive.
"""

from __future__ import annotations

from typing import Optional, Sequence


class ShapeMismatchError(ValueError):
    """
    Raised when an input tensor's shape violates an operator's shape contract.

    Attributes
    ----------
    expected : str
        Human-readable description of the accepted shape.
    actual : tuple[int, ...]
        Shape that was presented.
    """

    def __init__(self, expected: str, actual: Sequence[int]) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        expected : str
            Description of the accepted shape (e.g., "(steps, 8)").
        actual : Sequence[int]
            The offending shape.
        """
        self.expected = expected
        self.actual = tuple(int(d) for d in actual)
        super().__init__(f"Shape mismatch: expected {expected}, got {self.actual}.")


class GpuResourceError(RuntimeError):
    """
    Raised when the GPU runtime fails to compile a program, create or read a
    texture, or dispatch a program.

    Attributes
    ----------
    op : str
        Runtime operation that failed (e.g., "compile_program").
    """

    def __init__(self, op: str, reason: str) -> None:
        super().__init__(f"GPU {op} failed: {reason}")
        self.op = op
        self.reason = reason


class HostBufferUnavailableError(RuntimeError):
    """
    Raised when host memory of a tensor is read while its only valid copy is
    GPU-resident. Call `transfer_from_texture()` first.
    """

    def __init__(self, shape: Sequence[int]) -> None:
        super().__init__(
            f"Tensor of shape {tuple(shape)} is GPU-resident; "
            "call transfer_from_texture() before reading host data."
        )
        self.shape = tuple(shape)


class DataFormatError(ValueError):
    """Raised for a data-format tag other than channels_last/channels_first."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid data_format {value!r}. "
            "Expected 'channels_last' or 'channels_first'."
        )
        self.value = value


class DeviceNotSupportedError(RuntimeError):
    """
    Raised when an operation is requested on a device that cannot execute it.

    Attributes
    ----------
    op : str
        The name of the operation that was attempted (e.g., "create_texture").
    device : str
        String representation of the device on which the operation
        was attempted.
    """

    def __init__(self, op: str, device: str, detail: Optional[str] = None) -> None:
        msg = f"{op} is not supported on device '{device}'."
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg)
        self.op = op
        self.device = device
