"""Uniform outcome envelope returned at every stage boundary.

Responsibilities:
- Represent a stage or run outcome as a tagged union of `Success` and `Failure`.
- Keep the success value and the failure message mutually exclusive by construction.

Key types:
- `Success`: carries a value and optional diagnostic metadata.
- `Failure`: carries a human-readable error message and optional metadata.
- `Result`: type alias for `Success[T] | Failure`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar, Generic, TypeVar, Union

_T = TypeVar("_T")


def _frozen_metadata(metadata: Mapping[str, object] | None) -> Mapping[str, object]:
    """Copy metadata into a read-only mapping."""

    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True, slots=True)
class Success(Generic[_T]):
    """Succeeded outcome carrying a value.

    Attributes:
        value: Stage output.
        metadata: Diagnostic-only key/value pairs.
    """

    value: _T
    metadata: Mapping[str, object] = field(default_factory=dict)

    succeeded: ClassVar[bool] = True

    def __post_init__(self) -> None:
        """Freeze metadata so the envelope cannot change after construction."""

        object.__setattr__(self, "metadata", _frozen_metadata(self.metadata))

    @property
    def error_message(self) -> None:
        """Succeeded envelopes never carry an error message."""

        return None


@dataclass(frozen=True, slots=True)
class Failure:
    """Failed outcome carrying a human-readable message.

    Attributes:
        error_message: Description of what failed and why.
        metadata: Diagnostic-only key/value pairs.
    """

    error_message: str
    metadata: Mapping[str, object] = field(default_factory=dict)

    succeeded: ClassVar[bool] = False

    def __post_init__(self) -> None:
        """Validate the message and freeze metadata."""

        if not isinstance(self.error_message, str) or not self.error_message.strip():
            raise ValueError("Failure envelopes require a non-empty error message.")
        object.__setattr__(self, "metadata", _frozen_metadata(self.metadata))

    @property
    def value(self) -> None:
        """Failed envelopes never carry a value, not even a partial one."""

        return None


Result = Union[Success[_T], Failure]
