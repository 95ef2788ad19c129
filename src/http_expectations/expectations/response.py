"""
Response expectations.

Each expectation normalizes the subject to a TestResponse and delegates to a
single TestResponse assertion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Sequence

from http_expectations.exceptions import AssertionFailedError, ExpectationFailedError
from http_expectations.response.normalizer import to_test_response

if TYPE_CHECKING:
    from http_expectations.expectations.registry import Expectation, ExpectationRegistry
    from http_expectations.response.testing import TestResponse


def get_testable_response(expectation: Expectation) -> TestResponse:
    """Normalize the subject of ``expectation`` with its registry's context."""
    return to_test_response(expectation.value, expectation.registry.context)


# =============================================================================
# Status and redirects
# =============================================================================


def to_be_redirect(expectation: Expectation, uri: Optional[str] = None) -> Expectation:
    """Assert that the response is a redirection, optionally to ``uri``."""
    response = get_testable_response(expectation)
    response.assert_redirect()

    if uri is None:
        return expectation

    try:
        response.assert_location(uri)
    except ExpectationFailedError as e:
        location = response.headers.get("location")
        raise ExpectationFailedError(
            f"Failed asserting that the redirect uri [{location}] matches [{uri}]",
            expected=e.expected,
            actual=e.actual,
        ) from e

    return expectation


def to_be_redirect_to_signed_route(
    expectation: Expectation,
    name: Optional[str] = None,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Expectation:
    """Assert that the response redirects to a signed route."""
    get_testable_response(expectation).assert_redirect_to_signed_route(name, parameters)
    return expectation


def to_be_successful(expectation: Expectation) -> Expectation:
    """Assert that the response has a successful status code."""
    get_testable_response(expectation).assert_successful()
    return expectation


def to_be_ok(expectation: Expectation) -> Expectation:
    """Assert that the response has a 200 status code."""
    get_testable_response(expectation).assert_ok()
    return expectation


def to_confirm_creation(expectation: Expectation) -> Expectation:
    """Assert that the response has a 201 status code."""
    get_testable_response(expectation).assert_created()
    return expectation


def to_be_not_found(expectation: Expectation) -> Expectation:
    get_testable_response(expectation).assert_not_found()
    return expectation


def to_be_unauthorized(expectation: Expectation) -> Expectation:
    get_testable_response(expectation).assert_unauthorized()
    return expectation


def to_be_forbidden(expectation: Expectation) -> Expectation:
    get_testable_response(expectation).assert_forbidden()
    return expectation


def to_have_no_content(expectation: Expectation, status: int = 204) -> Expectation:
    """Assert that the response has the given status code and no content."""
    get_testable_response(expectation).assert_no_content(status)
    return expectation


def to_have_status(expectation: Expectation, status: int) -> Expectation:
    get_testable_response(expectation).assert_status(status)
    return expectation


def to_have_location(expectation: Expectation, uri: str) -> Expectation:
    """Assert that the Location header matches ``uri``."""
    get_testable_response(expectation).assert_location(uri)
    return expectation


def to_be_download(expectation: Expectation, filename: Optional[str] = None) -> Expectation:
    """Assert that the response offers a file download."""
    response = get_testable_response(expectation)

    try:
        response.assert_download(filename)
    except ExpectationFailedError:
        raise
    except AssertionFailedError as e:
        raise ExpectationFailedError(str(e)) from e

    return expectation


# =============================================================================
# Rendered content
# =============================================================================


def to_render(expectation: Expectation, text: Any, escape: bool = False) -> Expectation:
    """Assert that the response contains the given string or list of strings."""
    get_testable_response(expectation).assert_see(text, escape)
    return expectation


def to_render_in_order(
    expectation: Expectation, texts: Sequence[str], escape: bool = False
) -> Expectation:
    """Assert that the response contains the given strings in order."""
    get_testable_response(expectation).assert_see_in_order(texts, escape)
    return expectation


def to_render_text(expectation: Expectation, text: Any, escape: bool = False) -> Expectation:
    """Assert that the response text, without markup, contains the string(s)."""
    get_testable_response(expectation).assert_see_text(text, escape)
    return expectation


def to_render_text_in_order(
    expectation: Expectation, texts: Sequence[str], escape: bool = False
) -> Expectation:
    """Assert that the response text, without markup, contains the strings in order."""
    get_testable_response(expectation).assert_see_text_in_order(texts, escape)
    return expectation


def to_contain_text(expectation: Expectation, text: Any, escape: bool = False) -> Expectation:
    """Alias of ``to_render_text``."""
    return expectation.to_render_text(text, escape)


def to_contain_text_in_order(
    expectation: Expectation, texts: Sequence[str], escape: bool = False
) -> Expectation:
    """Alias of ``to_render_text_in_order``."""
    return expectation.to_render_text_in_order(texts, escape)


# =============================================================================
# JSON
# =============================================================================


def to_have_json(expectation: Expectation, json: Any, strict: bool = False) -> Expectation:
    """Assert that the response JSON is a superset of ``json``."""
    get_testable_response(expectation).assert_json(json, strict)
    return expectation


def to_have_exact_json(expectation: Expectation, json: Any) -> Expectation:
    get_testable_response(expectation).assert_exact_json(json)
    return expectation


def to_have_json_fragment(expectation: Expectation, json: Mapping[str, Any]) -> Expectation:
    get_testable_response(expectation).assert_json_fragment(json)
    return expectation


def to_have_json_structure(
    expectation: Expectation,
    structure: Optional[Any] = None,
    data: Optional[Any] = None,
) -> Expectation:
    """Assert that the response JSON has the given structure."""
    get_testable_response(expectation).assert_json_structure(structure, data)
    return expectation


def to_have_json_path(expectation: Expectation, path: str, expected: Any) -> Expectation:
    """Assert that the value (and type) at ``path`` matches ``expected``."""
    get_testable_response(expectation).assert_json_path(path, expected)
    return expectation


# =============================================================================
# Validation errors
# =============================================================================


def to_have_json_validation_errors(
    expectation: Expectation, errors: Any = None, key: str = "errors"
) -> Expectation:
    """Assert that the response has the given JSON validation errors."""
    get_testable_response(expectation).assert_json_validation_errors(errors, key)
    return expectation


def to_have_valid(
    expectation: Expectation,
    keys: Any = None,
    bag: str = "default",
    key: str = "errors",
) -> Expectation:
    """Assert that the response has no validation errors for the given keys."""
    get_testable_response(expectation).assert_valid(keys, bag, key)
    return expectation


def to_have_invalid(
    expectation: Expectation,
    keys: Any = None,
    bag: str = "default",
    key: str = "errors",
) -> Expectation:
    """Assert that the response has validation errors for the given keys."""
    get_testable_response(expectation).assert_invalid(keys, bag, key)
    return expectation


# =============================================================================
# Headers and session
# =============================================================================


def to_have_header(expectation: Expectation, name: str, value: Any = None) -> Expectation:
    """Assert that the response has the header, optionally with ``value``."""
    get_testable_response(expectation).assert_header(name, value)
    return expectation


def to_have_missing_header(expectation: Expectation, name: str) -> Expectation:
    get_testable_response(expectation).assert_header_missing(name)
    return expectation


def to_have_session(expectation: Expectation, key: Any, value: Any = None) -> Expectation:
    """Assert that the session has ``key``, optionally holding ``value``."""
    get_testable_response(expectation).assert_session_has(key, value)
    return expectation


def to_have_all_session(expectation: Expectation, bindings: Any) -> Expectation:
    """Assert that the session has every given key or key/value pair."""
    get_testable_response(expectation).assert_session_has_all(bindings)
    return expectation


RESPONSE_EXPECTATIONS: Dict[str, Callable[..., Expectation]] = {
    "to_be_redirect": to_be_redirect,
    "to_be_redirect_to_signed_route": to_be_redirect_to_signed_route,
    "to_be_successful": to_be_successful,
    "to_be_ok": to_be_ok,
    "to_confirm_creation": to_confirm_creation,
    "to_be_not_found": to_be_not_found,
    "to_be_unauthorized": to_be_unauthorized,
    "to_have_no_content": to_have_no_content,
    "to_be_forbidden": to_be_forbidden,
    "to_have_status": to_have_status,
    "to_be_download": to_be_download,
    "to_render": to_render,
    "to_render_in_order": to_render_in_order,
    "to_render_text": to_render_text,
    "to_render_text_in_order": to_render_text_in_order,
    "to_contain_text": to_contain_text,
    "to_contain_text_in_order": to_contain_text_in_order,
    "to_have_json": to_have_json,
    "to_have_exact_json": to_have_exact_json,
    "to_have_json_fragment": to_have_json_fragment,
    "to_have_json_structure": to_have_json_structure,
    "to_have_json_path": to_have_json_path,
    "to_have_json_validation_errors": to_have_json_validation_errors,
    "to_have_valid": to_have_valid,
    "to_have_invalid": to_have_invalid,
    "to_have_header": to_have_header,
    "to_have_missing_header": to_have_missing_header,
    "to_have_session": to_have_session,
    "to_have_all_session": to_have_all_session,
    "to_have_location": to_have_location,
}


def register_response_expectations(registry: ExpectationRegistry) -> ExpectationRegistry:
    """Register every response expectation on ``registry``."""
    for name, handler in RESPONSE_EXPECTATIONS.items():
        registry.register(name, handler)
    return registry
