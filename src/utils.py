"""Low-level helpers used across the metadata pipeline.

Kept deliberately small so higher-level modules can import without
circular dependencies.
"""

from __future__ import annotations


def truncate(text: str, max_len: int = 72) -> str:
    """Shorten a string with an ellipsis if it exceeds *max_len*."""
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


def parse_assignment(text: str) -> tuple[str, str]:
    """
    Split a ``TAG=VALUE`` argument.

    Args:
        text: Assignment as typed on the command line.

    Returns:
        ``(tag, value)``; the value may be empty.

    Raises:
        ValueError: If there is no ``=`` or the tag name is empty.
    """
    name, sep, value = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"Expected TAG=VALUE, got {text!r}")
    return name, value
