"""Unit tests for the success/failure envelope."""

from __future__ import annotations

import pytest

from storyvoice.result import Failure, Success


def test_success_carries_value_and_no_error_message() -> None:
    """Succeeded envelopes expose the value and never an error message."""

    result = Success([1, 2], metadata={"count": 2})

    assert result.succeeded is True
    assert result.value == [1, 2]
    assert result.error_message is None
    assert result.metadata["count"] == 2


def test_failure_carries_message_and_never_a_value() -> None:
    """Failed envelopes carry only a message plus optional metadata."""

    result = Failure("Text analysis failed: empty", metadata={"stage": "analyzing"})

    assert result.succeeded is False
    assert result.value is None
    assert result.error_message == "Text analysis failed: empty"
    assert result.metadata["stage"] == "analyzing"


@pytest.mark.parametrize("message", ["", "   "])
def test_failure_rejects_blank_message(message: str) -> None:
    """A failure without a message is a construction error."""

    with pytest.raises(ValueError, match="non-empty error message"):
        Failure(message)


def test_envelope_metadata_is_read_only_and_detached_from_input() -> None:
    """Metadata is copied into a read-only mapping at construction."""

    source = {"stage": "generating"}
    result = Failure("boom", metadata=source)
    source["stage"] = "changed"

    assert result.metadata["stage"] == "generating"
    with pytest.raises(TypeError):
        result.metadata["stage"] = "other"  # type: ignore[index]


def test_success_metadata_defaults_to_empty_mapping() -> None:
    """Metadata is optional on both envelope kinds."""

    assert dict(Success("ok").metadata) == {}
    assert dict(Failure("no").metadata) == {}
