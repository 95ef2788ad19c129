"""Tests for the registered response expectations."""

import pytest

from http_expectations.exceptions import (
    AssertionFailedError,
    ConfigurationError,
    ExpectationFailedError,
    UnknownExpectationError,
)
from http_expectations.expectations.registry import ExpectationRegistry
from http_expectations.expectations.response import (
    RESPONSE_EXPECTATIONS,
    get_testable_response,
    register_response_expectations,
)
from http_expectations.logging.expectation_logger import Outcome
from http_expectations.response.testing import TestResponse


@pytest.fixture
def expect(registry):
    return registry.expect


# =============================================================================
# Behavior Scenarios
# =============================================================================


def test_redirect_scenario(expect, make_response):
    """302 to /home passes for /home and names both URIs when it fails."""
    response = make_response(302, headers={"Location": "/home"})

    expect(response).to_be_redirect("/home")

    with pytest.raises(ExpectationFailedError) as exc_info:
        expect(response).to_be_redirect("/other")

    message = str(exc_info.value)
    assert "/home" in message
    assert "/other" in message


def test_status_scenario(expect, make_response):
    response = make_response(200)

    expect(response).to_be_ok()

    with pytest.raises(AssertionFailedError):
        expect(response).to_be_not_found()


def test_json_scenario(expect, make_response):
    response = make_response(200, json={"a": 1, "b": 2})

    expect(response).to_have_json({"a": 1})

    with pytest.raises(AssertionFailedError):
        expect(response).to_have_exact_json({"a": 1})


def test_header_scenario(expect, make_response):
    response = make_response(200)

    expect(response).to_have_missing_header("X-Foo")

    with pytest.raises(AssertionFailedError):
        expect(response).to_have_header("X-Foo")


def test_unregistered_name_scenario(expect, make_response):
    with pytest.raises(ConfigurationError):
        expect(make_response(200)).to_be_teapot()


# =============================================================================
# Registration
# =============================================================================


def test_every_expectation_is_registered(registry):
    assert registry.names == sorted(RESPONSE_EXPECTATIONS)
    assert len(RESPONSE_EXPECTATIONS) == 30


def test_register_returns_registry():
    registry = ExpectationRegistry()

    assert register_response_expectations(registry) is registry


def test_get_testable_response_uses_registry_context(registry, make_response, context):
    response = get_testable_response(registry.expect(make_response(200)))

    assert isinstance(response, TestResponse)
    assert response.context is context


# =============================================================================
# Chaining
# =============================================================================


def test_expectations_chain(expect, make_response):
    response = make_response(
        201,
        json={"data": {"id": 9, "name": "Ada"}},
        headers={"Location": "/users/9"},
    )

    handle = expect(response)
    result = (
        handle.to_confirm_creation()
        .to_be_successful()
        .to_have_status(201)
        .to_have_location("/users/9")
        .to_have_header("Content-Type", "application/json")
        .to_have_json_path("data.id", 9)
        .to_have_json_fragment({"name": "Ada"})
        .to_have_json_structure({"data": ["id", "name"]})
    )

    assert result is handle


def test_chain_accepts_test_response(expect, make_response):
    wrapped = TestResponse(make_response(403))

    assert expect(wrapped).to_be_forbidden().value is wrapped


def test_subject_is_normalized_before_checks(expect):
    with pytest.raises(ConfigurationError):
        expect({"status": 200}).to_be_ok()


# =============================================================================
# Status and Redirects
# =============================================================================


@pytest.mark.parametrize(
    "name, status",
    [
        ("to_be_ok", 200),
        ("to_confirm_creation", 201),
        ("to_be_unauthorized", 401),
        ("to_be_forbidden", 403),
        ("to_be_not_found", 404),
    ],
)
def test_status_expectations(expect, make_response, name, status):
    getattr(expect(make_response(status)), name)()

    with pytest.raises(ExpectationFailedError):
        getattr(expect(make_response(418)), name)()


def test_no_content(expect, make_response):
    expect(make_response(204)).to_have_no_content()
    expect(make_response(202)).to_have_no_content(202)

    with pytest.raises(ExpectationFailedError):
        expect(make_response(200, text="body")).to_have_no_content(200)


def test_redirect_without_uri(expect, make_response):
    expect(make_response(301, headers={"Location": "/a"})).to_be_redirect()

    with pytest.raises(ExpectationFailedError, match="but received 200"):
        expect(make_response(200)).to_be_redirect()


def test_redirect_to_signed_route(expect, make_response, signer, urls):
    location = signer.signed_route(urls, "verification.verify", {"id": 4, "hash": "abc"})
    response = make_response(302, headers={"Location": location})

    expect(response).to_be_redirect_to_signed_route()
    expect(response).to_be_redirect_to_signed_route("verification.verify", {"id": 4, "hash": "abc"})

    unsigned = make_response(302, headers={"Location": "/email/verify/4/abc"})
    with pytest.raises(AssertionFailedError, match="signed route"):
        expect(unsigned).to_be_redirect_to_signed_route()


def test_redirect_to_signed_route_with_query_parameters(expect, make_response, signer, urls):
    parameters = {"post": 3, "z": "1", "a": "2"}
    location = signer.signed_route(urls, "posts.show", parameters)
    response = make_response(302, headers={"Location": location})

    expect(response).to_be_redirect_to_signed_route("posts.show", parameters)

    with pytest.raises(AssertionFailedError):
        expect(response).to_be_redirect_to_signed_route("posts.show", {"post": 3, "z": "9", "a": "2"})


# =============================================================================
# Downloads
# =============================================================================


def test_download(expect, make_response):
    response = make_response(200, headers={"Content-Disposition": "attachment; filename=a.pdf"})

    expect(response).to_be_download().to_be_download("a.pdf")


@pytest.mark.parametrize(
    "headers, filename, message",
    [
        ({}, None, "does not offer a file download"),
        ({"Content-Disposition": "inline"}, None, "Disposition [inline]"),
        ({"Content-Disposition": "attachment; filename=a.pdf"}, "b.pdf", "Expected file [b.pdf]"),
    ],
)
def test_download_failures_are_expectation_failures(
    expect, make_response, headers, filename, message
):
    """Download failures surface as ExpectationFailedError with the original message."""
    response = make_response(200, headers=headers)

    with pytest.raises(ExpectationFailedError) as exc_info:
        expect(response).to_be_download(filename)

    assert message in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, AssertionFailedError)


# =============================================================================
# Rendered Content and Aliases
# =============================================================================

PAGE = "<main><h1>Orders</h1><p>Fish &amp; Chips</p><p>Total: 3</p></main>"


def test_render(expect, make_response):
    response = make_response(200, html=PAGE)

    expect(response).to_render("<h1>Orders</h1>").to_render("Fish & Chips", escape=True)
    expect(response).to_render_in_order(["Orders", "Total"])
    expect(response).to_render_text("OrdersFish &amp; Chips")
    expect(response).to_render_text_in_order(["Orders", "Total: 3"])

    with pytest.raises(ExpectationFailedError):
        expect(response).to_render_in_order(["Total", "Orders"])


@pytest.mark.parametrize(
    "text", ["Orders", "Total: 3", "<h1>", "Missing", ["Orders", "Total"], ["Orders", "Nope"]]
)
def test_contain_text_matches_render_text(expect, make_response, text):
    response = make_response(200, html=PAGE)

    def outcome(name):
        try:
            getattr(expect(response), name)(text)
        except AssertionError as e:
            return str(e)
        return None

    assert outcome("to_contain_text") == outcome("to_render_text")


@pytest.mark.parametrize("texts", [["Orders", "Total"], ["Total", "Orders"], ["Chips", "<p>"]])
def test_contain_text_in_order_matches_render_text_in_order(expect, make_response, texts):
    response = make_response(200, html=PAGE)

    def outcome(name):
        try:
            getattr(expect(response), name)(texts)
        except AssertionError as e:
            return str(e)
        return None

    assert outcome("to_contain_text_in_order") == outcome("to_render_text_in_order")


def test_alias_dispatches_through_registry(registry, events, make_response):
    """The alias re-invokes the named expectation, so overriding it changes both."""
    calls = []
    registry.register("to_render_text", lambda e, text, escape=False: calls.append(text))

    registry.expect(make_response(200, text="x")).to_contain_text("anything")

    assert calls == ["anything"]
    assert events.get_events(name="to_render_text", outcome=Outcome.PASSED)


# =============================================================================
# JSON and Validation
# =============================================================================


def test_json_expectations(expect, make_response):
    response = make_response(200, json={"data": [{"id": 1, "score": 1.5}]})

    expect(response).to_have_json({"data": [{"id": 1}]}).to_have_json(
        {"data": [{"score": 1.5}]}, strict=True
    )
    expect(response).to_have_exact_json({"data": [{"score": 1.5, "id": 1}]})
    expect(response).to_have_json_structure().to_have_json_structure({"data": {"*": ["id"]}})
    expect(response).to_have_json_structure(["id"], {"id": 5})
    expect(response).to_have_json_path("data.0.score", 1.5)

    with pytest.raises(ExpectationFailedError):
        expect(response).to_have_json_path("data.0.id", 1.0)


def test_validation_expectations(expect, make_response):
    response = make_response(422, json={"errors": {"title": ["The title is required."]}})

    expect(response).to_have_json_validation_errors("title")
    expect(response).to_have_json_validation_errors({"title": "required"})
    expect(response).to_have_invalid(["title"]).to_have_valid(["body"])

    with pytest.raises(AssertionFailedError):
        expect(response).to_have_valid()

    custom = make_response(422, json={"problems": {"title": ["Bad."]}})
    expect(custom).to_have_json_validation_errors("title", key="problems")
    expect(custom).to_have_invalid("title", key="problems")


def test_session_validation_expectations(expect, make_response):
    response = TestResponse(
        make_response(302, headers={"Location": "/posts/create"}),
        session={"errors": {"login": {"email": ["These credentials do not match."]}}},
    )

    expect(response).to_have_invalid({"email": "*do not match*"}, bag="login")
    expect(response).to_have_valid()

    with pytest.raises(AssertionFailedError):
        expect(response).to_have_valid(bag="login")


def test_session_validation_with_message_list(expect, make_response):
    response = TestResponse(
        make_response(302, headers={"Location": "/login"}),
        session={"errors": {"email": ["These credentials do not match."]}},
    )

    expect(response).to_have_invalid({"email": ["*do not match*"]})
    expect(response).to_have_invalid({"email": ["*unknown*", "These credentials*"]})

    with pytest.raises(AssertionFailedError, match="'email' => '\\*unknown\\*, \\*missing\\*'"):
        expect(response).to_have_invalid({"email": ["*unknown*", "*missing*"]})


# =============================================================================
# Headers and Session
# =============================================================================


def test_header_expectations(expect, make_response):
    response = make_response(200, headers={"Cache-Control": "no-store"})

    expect(response).to_have_header("Cache-Control", "no-store").to_have_missing_header("ETag")

    with pytest.raises(ExpectationFailedError):
        expect(response).to_have_header("Cache-Control", "public")


def test_session_expectations(expect, make_response):
    response = TestResponse(make_response(200), session={"cart": {"items": 2}, "flash": "Saved"})

    expect(response).to_have_session("flash").to_have_session("cart.items", 2)
    expect(response).to_have_all_session({"flash": "Saved", "cart.items": 2})

    with pytest.raises(AssertionFailedError):
        expect(response).to_have_session("coupon")


def test_session_expectations_normalize_httpx_responses(make_response, context, events):
    context.session_resolver = lambda response: {"user_id": 7}
    registry = register_response_expectations(
        ExpectationRegistry(context=context, expectation_logger=events)
    )

    registry.expect(make_response(200)).to_have_session("user_id", 7)


def test_unknown_expectation_lists_names(expect, make_response):
    with pytest.raises(UnknownExpectationError, match="to_be_ok"):
        expect(make_response(200)).to_be_okay()
