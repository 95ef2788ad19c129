"""
Pytest plugin for response expectations.

This module provides fixtures and hooks exposing the expectation registry to
tests.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generator

import httpx
import pytest

from http_expectations.config.loader import ConfigLoader
from http_expectations.config.models import ExpectationsConfig
from http_expectations.expectations.registry import Expectation, ExpectationRegistry
from http_expectations.expectations.response import register_response_expectations
from http_expectations.logging.expectation_logger import ExpectationLogger
from http_expectations.response.context import ResponseContext
from http_expectations.response.testing import TestResponse

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser

logger = logging.getLogger(__name__)


# =============================================================================
# Pytest Hooks - Configuration and Options
# =============================================================================


def pytest_addoption(parser: Parser) -> None:
    """Register pytest command-line and ini options."""
    group = parser.getgroup("expectations", "HTTP Expectation Options")

    group.addoption(
        "--expect-config",
        dest="expect_config",
        metavar="PATH",
        help="Path to http-expectations YAML configuration file",
    )

    group.addoption(
        "--expect-log-level",
        dest="expect_log_level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Expectation log level",
    )

    group.addoption(
        "--expect-log-file",
        dest="expect_log_file",
        metavar="PATH",
        help="Path to write expectation logs",
    )

    # INI options
    parser.addini(
        "expect_config_file",
        help="Default http-expectations configuration file path",
        default=None,
    )

    parser.addini(
        "expect_app_url",
        help="Base URL that relative redirect locations are resolved against",
        default=None,
    )

    parser.addini(
        "expect_log_expectations",
        help="Log every expectation to the console",
        type="bool",
        default=False,
    )


def pytest_configure(config: Config) -> None:
    """Configure the http-expectations plugin."""
    config.addinivalue_line(
        "markers",
        "expect_session(data): Session data attached to responses checked in this test",
    )


# =============================================================================
# Session-scoped Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def expectations_config(request: pytest.FixtureRequest) -> ExpectationsConfig:
    """
    Load expectation configuration.

    This fixture loads configuration from:
    1. --expect-config command line option
    2. expect_config_file ini option
    3. Default config file search

    Returns:
        ExpectationsConfig instance.
    """
    config_path = request.config.getoption("expect_config")

    if config_path is None:
        config_path = request.config.getini("expect_config_file") or None

    root_dir = Path(request.config.rootpath)
    cfg = ConfigLoader.load(config_path, root_dir)

    ini_app_url = request.config.getini("expect_app_url")
    if ini_app_url:
        cfg = ConfigLoader.merge_configs(cfg, ExpectationsConfig(app_url=ini_app_url))

    return cfg


@pytest.fixture(scope="session")
def expectation_logger(
    request: pytest.FixtureRequest, expectations_config: ExpectationsConfig
) -> Generator[ExpectationLogger, None, None]:
    """
    Create expectation logger instance.

    Its handlers, including the --expect-log-file handler, are closed when
    the session ends.

    Yields:
        ExpectationLogger recording every expectation run in the session.
    """
    log_level = request.config.getoption("expect_log_level")
    if log_level is None:
        log_level = expectations_config.log_level

    log_file = request.config.getoption("expect_log_file")
    log_file_path = Path(log_file) if log_file else None

    log_to_console = (
        request.config.getini("expect_log_expectations")
        or expectations_config.log_expectations
    )

    expectation_logger = ExpectationLogger(
        name="session",
        level=log_level,
        log_to_console=log_to_console,
        log_to_file=log_file_path,
    )

    yield expectation_logger

    expectation_logger.close()


@pytest.fixture(scope="session")
def expectation_registry(
    expectations_config: ExpectationsConfig,
    expectation_logger: ExpectationLogger,
) -> ExpectationRegistry:
    """
    Session-wide expectation registry.

    Built once with every response expectation registered. Override this
    fixture, or call ``register``/``extend`` on it from a session fixture,
    to add project-specific expectations.

    Returns:
        ExpectationRegistry with the response expectations.
    """
    registry = ExpectationRegistry(
        context=ResponseContext.from_config(expectations_config),
        expectation_logger=expectation_logger,
        warn_on_overwrite=expectations_config.warn_on_overwrite,
    )
    register_response_expectations(registry)
    logger.info(f"Registered {len(registry)} expectation(s)")
    return registry


# =============================================================================
# Function-scoped Fixtures
# =============================================================================


@pytest.fixture
def expect(
    expectation_registry: ExpectationRegistry,
    expectation_logger: ExpectationLogger,
    request: pytest.FixtureRequest,
) -> Generator[Callable[[object], Expectation], None, None]:
    """
    Factory for expectation chains.

    Usage:
        def test_home(expect, client):
            expect(client.get("/")).to_be_ok().to_render("Welcome")

    Events recorded while the test runs are attached to its report.

    Returns:
        Callable turning a subject into an Expectation.
    """
    expectation_logger.bind_test(request.node.nodeid)

    marker = request.node.get_closest_marker("expect_session")
    if marker is None:
        yield expectation_registry.expect
    else:
        session = marker.args[0] if marker.args else dict(marker.kwargs)
        yield lambda value: expectation_registry.expect(
            _with_session(value, expectation_registry, session)
        )

    expectation_logger.bind_test(None)


def _with_session(value: object, registry: ExpectationRegistry, session: dict) -> object:
    """Attach ``session`` to httpx responses; other subjects pass through."""
    if isinstance(value, httpx.Response):
        return TestResponse(value, context=registry.context, session=session)
    return value


# =============================================================================
# Pytest Hooks - Reporting
# =============================================================================


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call):
    """Attach the test's expectation events to its report."""
    outcome = yield
    rep = outcome.get_result()

    if hasattr(item, "funcargs") and "expect" in item.funcargs:
        expectation_logger = item.funcargs.get("expectation_logger")
        if expectation_logger is not None:
            rep.expectation_events = expectation_logger.get_events(test_id=item.nodeid)


# Optional: pytest-html integration
try:
    import pytest_html

    @pytest.hookimpl(optionalhook=True)
    def pytest_html_results_table_header(cells):
        """Add expectations column to HTML report."""
        cells.insert(2, "<th>Expectations</th>")

    @pytest.hookimpl(optionalhook=True)
    def pytest_html_results_table_row(report, cells):
        """Add expectation count to HTML report row."""
        event_count = len(getattr(report, "expectation_events", []))
        cells.insert(2, f"<td>{event_count}</td>")

except ImportError:
    pass  # pytest-html not installed
