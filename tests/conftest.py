"""
Pytest configuration for http-expectations tests.

Provides a response factory, a response context with routes and a signing
key, and a fresh expectation registry per test.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from http_expectations.expectations.registry import ExpectationRegistry
from http_expectations.expectations.response import register_response_expectations
from http_expectations.logging.expectation_logger import ExpectationLogger
from http_expectations.response.context import ResponseContext
from http_expectations.routing.urls import UrlGenerator, UrlSigner

APP_URL = "http://testserver"
APP_KEY = "test-secret-key"

ROUTES = {
    "home": "/home",
    "verification.verify": "/email/verify/{id}/{hash}",
    "posts.show": "/posts/{post}/{slug?}",
}


# =============================================================================
# Response Fixtures
# =============================================================================


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """
    Factory for httpx responses.

    Usage:
        make_response(302, headers={"Location": "/home"})
        make_response(json={"a": 1})
    """

    def factory(status_code: int = 200, **kwargs: Any) -> httpx.Response:
        kwargs.setdefault("request", httpx.Request("GET", f"{APP_URL}/"))
        return httpx.Response(status_code, **kwargs)

    return factory


# =============================================================================
# Context and Registry Fixtures
# =============================================================================


@pytest.fixture
def urls() -> UrlGenerator:
    return UrlGenerator(APP_URL, ROUTES)


@pytest.fixture
def signer() -> UrlSigner:
    return UrlSigner(APP_KEY)


@pytest.fixture
def context(urls: UrlGenerator, signer: UrlSigner) -> ResponseContext:
    """Response context resolving against the test server."""
    return ResponseContext(urls=urls, signer=signer)


@pytest.fixture
def events() -> ExpectationLogger:
    """Expectation logger that only records, without console output."""
    return ExpectationLogger(name="tests", log_to_console=False)


@pytest.fixture
def registry(context: ResponseContext, events: ExpectationLogger) -> ExpectationRegistry:
    """Fresh registry with every response expectation registered."""
    registry = ExpectationRegistry(context=context, expectation_logger=events)
    return register_response_expectations(registry)
