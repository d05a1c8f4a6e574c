"""Shared assertion helpers that keep Ruff's PLR2004 quiet while improving error messages."""

from __future__ import annotations


def assert_equal(actual, expected, *, message: str | None = None) -> None:
    """Assert equality with a clearer error message."""
    failure_message = message or f"Expected {expected!r} but received {actual!r}"
    assert actual == expected, failure_message


def assert_call_count(mock_callable, expected: int) -> None:
    """Assert how many times a mock was called, listing the calls on failure."""
    actual = mock_callable.call_count
    assert actual == expected, (
        f"Expected {expected} call(s) but received {actual}: {mock_callable.call_args_list!r}"
    )
