"""Tests for the expectation registry and the chainable handle."""

import logging

import pytest

from http_expectations.exceptions import (
    AssertionFailedError,
    ConfigurationError,
    UnknownExpectationError,
)
from http_expectations.expectations.registry import Expectation, ExpectationRegistry
from http_expectations.expectations.response import RESPONSE_EXPECTATIONS
from http_expectations.logging.expectation_logger import Outcome


# =============================================================================
# Registration
# =============================================================================


def test_register_and_invoke(make_response, events):
    registry = ExpectationRegistry(expectation_logger=events)
    seen = []

    def to_be_seen(expectation, marker):
        seen.append((expectation.value.status_code, marker))
        return expectation

    registry.register("to_be_seen", to_be_seen)
    handle = registry.expect(make_response(200))

    assert handle.to_be_seen("x") is handle
    assert seen == [(200, "x")]
    assert "to_be_seen" in registry
    assert len(registry) == 1


def test_last_registration_wins():
    registry = ExpectationRegistry()
    registry.register("to_answer", lambda e: 1)
    registry.register("to_answer", lambda e: 2)

    assert registry.expect(None).to_answer() == 2
    assert registry.names == ["to_answer"]


def test_overwrite_logs_warning_when_enabled(caplog):
    registry = ExpectationRegistry(warn_on_overwrite=True)
    registry.register("to_answer", lambda e: None)

    with caplog.at_level(logging.DEBUG, logger="http_expectations.expectations.registry"):
        registry.register("to_answer", lambda e: None)

    assert any(
        r.levelno == logging.WARNING and "to_answer" in r.getMessage() for r in caplog.records
    )


def test_overwrite_logs_debug_by_default(caplog):
    registry = ExpectationRegistry()
    registry.register("to_answer", lambda e: None)

    with caplog.at_level(logging.DEBUG, logger="http_expectations.expectations.registry"):
        registry.register("to_answer", lambda e: None)

    records = [r for r in caplog.records if r.name == "http_expectations.expectations.registry"]
    assert records
    assert all(r.levelno == logging.DEBUG for r in records)


def test_overwrite_is_recorded_by_logger(events):
    registry = ExpectationRegistry(expectation_logger=events)
    registry.register("to_answer", lambda e: None)
    registry.register("to_answer", lambda e: None)

    registrations = events.get_events(outcome=Outcome.REGISTERED)
    assert [e.error for e in registrations] == [None, "replaced an existing expectation"]


@pytest.mark.parametrize("name", ["", "to be", "_private", "1st", "to-be"])
def test_invalid_names_are_rejected(name):
    with pytest.raises(ConfigurationError, match="Invalid expectation name"):
        ExpectationRegistry().register(name, lambda e: None)


@pytest.mark.parametrize("name", sorted(Expectation.RESERVED))
def test_reserved_names_are_rejected(name):
    with pytest.raises(ConfigurationError, match="reserved"):
        ExpectationRegistry().register(name, lambda e: None)


def test_handler_must_be_callable():
    with pytest.raises(ConfigurationError, match="not callable"):
        ExpectationRegistry().register("to_be_x", "not a function")


def test_extend_decorator(make_response):
    registry = ExpectationRegistry()

    @registry.extend("to_be_teapot")
    def to_be_teapot(expectation):
        expectation.response.assert_status(418)
        return expectation

    assert registry.get("to_be_teapot") is to_be_teapot
    registry.expect(make_response(418)).to_be_teapot()

    with pytest.raises(AssertionFailedError):
        registry.expect(make_response(200)).to_be_teapot()


# =============================================================================
# Lookup
# =============================================================================


def test_unknown_name_lists_available(registry, make_response):
    handle = registry.expect(make_response(200))

    with pytest.raises(UnknownExpectationError) as exc_info:
        handle.to_be_teapot()

    error = exc_info.value
    assert error.name == "to_be_teapot"
    assert "to_be_ok" in error.available
    assert "No expectation named 'to_be_teapot' is registered" in str(error)


def test_unknown_name_is_attribute_error(registry):
    handle = registry.expect(None)

    assert not hasattr(handle, "to_be_teapot")
    assert hasattr(handle, "to_be_ok")
    assert getattr(handle, "to_fly", None) is None


def test_unknown_name_is_logged_on_invoke(events):
    registry = ExpectationRegistry(expectation_logger=events)

    with pytest.raises(UnknownExpectationError):
        registry.invoke(registry.expect(None), "to_fly")

    assert events.get_events(name="to_fly", outcome=Outcome.ERROR)


def test_attribute_lookup_is_not_logged(events):
    registry = ExpectationRegistry(expectation_logger=events)
    handle = registry.expect(None)

    assert not hasattr(handle, "to_fly")
    with pytest.raises(UnknownExpectationError):
        registry.get("to_fly")

    assert events.get_events(outcome=Outcome.ERROR) == []


def test_private_and_reserved_attributes_do_not_dispatch(registry):
    handle = registry.expect(None)

    with pytest.raises(AttributeError):
        handle._secret
    assert handle.value is None
    assert handle.registry is registry


def test_dir_lists_expectations(registry):
    names = dir(registry.expect(None))

    for name in RESPONSE_EXPECTATIONS:
        assert name in names
    assert "and_" in names


# =============================================================================
# Invocation
# =============================================================================


def test_none_result_returns_handle(make_response):
    registry = ExpectationRegistry()
    registry.register("to_do_nothing", lambda e: None)

    handle = registry.expect(make_response(200))

    assert handle.to_do_nothing() is handle


def test_and_starts_new_chain(registry, make_response):
    first = registry.expect(make_response(200))
    second = first.to_be_ok().and_(make_response(404))

    assert second is not first
    assert second.registry is registry
    second.to_be_not_found()


def test_invocations_are_recorded(registry, events, make_response):
    handle = registry.expect(make_response(200))
    handle.to_have_status(200)

    with pytest.raises(AssertionFailedError):
        handle.to_have_status(201)

    passed = events.get_events(name="to_have_status", outcome=Outcome.PASSED)
    failed = events.get_events(name="to_have_status", outcome=Outcome.FAILED)

    assert len(passed) == 1
    assert passed[0].arguments == "200"
    assert passed[0].duration_ms is not None
    assert len(failed) == 1
    assert "[201] but received 200" in failed[0].error


def test_configuration_errors_are_recorded(registry, events):
    with pytest.raises(ConfigurationError):
        registry.expect("not a response").to_be_ok()

    assert events.get_events(name="to_be_ok", outcome=Outcome.ERROR)


def test_default_context(make_response):
    registry = ExpectationRegistry()

    assert registry.context.urls.app_url == "http://localhost"
    assert registry.expect(make_response(200)).response.status_code == 200
