"""
http-expectations: fluent response expectations for pytest.

This package provides a pytest plugin and a registry of named, chainable
expectations over httpx responses.
"""

from http_expectations.config.models import ExpectationsConfig
from http_expectations.exceptions import (
    AssertionFailedError,
    ConfigurationError,
    ExpectationFailedError,
    RouteNotDefinedError,
    UnknownExpectationError,
    UnsupportedSubjectError,
)
from http_expectations.expectations.registry import Expectation, ExpectationRegistry
from http_expectations.expectations.response import register_response_expectations
from http_expectations.logging.expectation_logger import ExpectationLogger
from http_expectations.response.context import ResponseContext
from http_expectations.response.normalizer import to_test_response
from http_expectations.response.testing import TestResponse
from http_expectations.routing.urls import UrlGenerator, UrlSigner

__version__ = "0.1.0"

__all__ = [
    # Config
    "ExpectationsConfig",
    # Errors
    "AssertionFailedError",
    "ConfigurationError",
    "ExpectationFailedError",
    "RouteNotDefinedError",
    "UnknownExpectationError",
    "UnsupportedSubjectError",
    # Expectations
    "Expectation",
    "ExpectationRegistry",
    "register_response_expectations",
    "ExpectationLogger",
    # Responses
    "ResponseContext",
    "TestResponse",
    "to_test_response",
    "UrlGenerator",
    "UrlSigner",
]
