"""Exception hierarchy for response expectations."""

from __future__ import annotations

from typing import Any, List, Optional


class AssertionFailedError(AssertionError):
    """A response assertion did not hold."""


class ExpectationFailedError(AssertionFailedError):
    """
    A comparison failed.

    Carries the expected and actual values when they are known so that
    reports can show both sides.
    """

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        s = self.message
        if self.expected is not None:
            s += f"\n  Expected: {self.expected!r}"
        if self.actual is not None:
            s += f"\n  Actual: {self.actual!r}"
        return s


class ConfigurationError(Exception):
    """Setup or programming mistake, as opposed to a failed assertion."""


class UnknownExpectationError(ConfigurationError, AttributeError):
    """An expectation name was used that was never registered."""

    def __init__(self, name: str, available: Optional[List[str]] = None):
        listing = ", ".join(available or []) or "(none)"
        super().__init__(
            f"No expectation named '{name}' is registered. Available expectations: {listing}"
        )
        # AttributeError.__init__ resets ``name``
        self.name = name
        self.available = available or []


class UnsupportedSubjectError(ConfigurationError, TypeError):
    """The subject cannot be turned into a TestResponse."""

    def __init__(self, subject: Any):
        self.subject = subject
        super().__init__(
            f"Cannot build a TestResponse from {type(subject).__name__}; "
            "expected an httpx.Response or a TestResponse"
        )


class RouteNotDefinedError(ConfigurationError, KeyError):
    """A named route is unknown or was given incomplete parameters."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
