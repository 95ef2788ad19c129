"""Logging of expectation invocations."""

from http_expectations.logging.expectation_logger import (
    ExpectationEvent,
    ExpectationLogger,
    Outcome,
)

__all__ = ["ExpectationEvent", "ExpectationLogger", "Outcome"]
