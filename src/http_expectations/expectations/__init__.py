"""Named expectations and the registry that dispatches them."""

from http_expectations.expectations.registry import Expectation, ExpectationRegistry
from http_expectations.expectations.response import (
    RESPONSE_EXPECTATIONS,
    register_response_expectations,
    get_testable_response,
)

__all__ = [
    "Expectation",
    "ExpectationRegistry",
    "RESPONSE_EXPECTATIONS",
    "register_response_expectations",
    "get_testable_response",
]
