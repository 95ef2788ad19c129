"""Canonical test responses and the normalizer that produces them."""

from http_expectations.response.context import ResponseContext
from http_expectations.response.normalizer import to_test_response
from http_expectations.response.testing import TestResponse

__all__ = ["ResponseContext", "TestResponse", "to_test_response"]
