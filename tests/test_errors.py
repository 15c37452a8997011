"""Tests for errors module."""

import pytest

from errors import (
    MetadataError,
    NotFoundError,
    ReadError,
    StorageError,
    ToolError,
    ToolTimeoutError,
    ValidationError,
)


class TestErrorKinds:
    """Every error carries a stable kind."""

    @pytest.mark.parametrize(
        "error_cls, kind",
        [
            (ValidationError, "validation"),
            (NotFoundError, "not_found"),
            (ToolError, "tool"),
            (ReadError, "read"),
            (ToolTimeoutError, "timeout"),
            (StorageError, "io"),
        ],
    )
    def test_kind(self, error_cls, kind: str) -> None:
        error = error_cls("message")
        assert isinstance(error, MetadataError)
        assert error.kind == kind
        assert error.to_dict() == {"success": False, "kind": kind, "error": "message"}

    def test_tool_errors_share_a_base(self) -> None:
        assert issubclass(ReadError, ToolError)
        assert issubclass(ToolTimeoutError, ToolError)

    def test_stderr_in_dict(self) -> None:
        error = ToolError("failed", stderr="Error: Not a valid JPEG")
        assert error.to_dict()["stderr"] == "Error: Not a valid JPEG"
        assert str(error) == "failed"
