"""Canonical test response with the full assertion surface."""

from __future__ import annotations

import fnmatch
import html
import json
import re
from typing import (
    Any,
    Callable,
    Iterable,
    List,
    Mapping,
    NoReturn,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import httpx

from http_expectations.exceptions import AssertionFailedError, ExpectationFailedError
from http_expectations.response.context import ResponseContext
from http_expectations.response.json_tools import (
    MISSING,
    assert_structure,
    contains_fragment,
    data_get,
    data_has,
    dump,
    is_identical,
    is_subset,
)
from http_expectations.routing.urls import strip_signature, urls_match

REDIRECT_STATUSES = (201, 301, 302, 303, 307, 308)

_TAGS = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)

Strings = Union[str, Sequence[str]]


def _wrap(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _error_items(errors: Any) -> List[Tuple[str, Any]]:
    """Flatten ``"key"``, ``["a", "b"]``, ``{"a": "msg"}`` or mixes of them into pairs."""
    if isinstance(errors, Mapping):
        return list(errors.items())
    items: List[Tuple[str, Any]] = []
    for entry in _wrap(errors):
        if isinstance(entry, Mapping):
            items.extend(entry.items())
        else:
            items.append((entry, None))
    return items


def _preview(text: str, limit: int = 200) -> str:
    return text[:limit] + "..." if len(text) > limit else text


# (double quote, single quote) entities: html.escape, Jinja2/markupsafe, Laravel e()
_QUOTE_STYLES = (("&quot;", "&#x27;"), ("&#34;", "&#39;"), ("&quot;", "&#039;"))


def _escaped_forms(text: str) -> List[str]:
    """HTML-escaped ``text`` in every common quote entity style, html.escape first."""
    base = html.escape(text, quote=False)
    forms = [base.replace('"', dq).replace("'", sq) for dq, sq in _QUOTE_STYLES]
    return list(dict.fromkeys(forms))


class TestResponse:
    """
    An httpx response wrapped with assertion helpers.

    Every ``assert_*`` method returns the response so that calls can be
    chained. Attributes not defined here are read from the base response.

    Usage:
        response = TestResponse.from_base_response(client.get("/posts"))
        response.assert_ok().assert_json_path("data.0.id", 1)
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        response: httpx.Response,
        context: Optional[ResponseContext] = None,
        session: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize test response.

        Args:
            response: The base httpx response.
            context: Application context for URLs, signatures and sessions.
            session: Session data for the request that produced the response.
        """
        self._base_response = response
        self._context = context or ResponseContext()
        self._session = session
        self._decoded: Any = MISSING

    @classmethod
    def from_base_response(
        cls,
        response: httpx.Response,
        context: Optional[ResponseContext] = None,
        session: Optional[Mapping[str, Any]] = None,
    ) -> TestResponse:
        """Create a TestResponse from an httpx response."""
        return cls(response, context=context, session=session)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_base_response":
            raise AttributeError(name)
        return getattr(self._base_response, name)

    def __repr__(self) -> str:
        return f"TestResponse({self.status_code}, {self.headers.get('content-type', '-')})"

    # -------------------------------------------------------------------------
    # Read surface
    # -------------------------------------------------------------------------

    @property
    def base_response(self) -> httpx.Response:
        return self._base_response

    @property
    def context(self) -> ResponseContext:
        return self._context

    @property
    def status_code(self) -> int:
        return self._base_response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._base_response.headers

    @property
    def content(self) -> bytes:
        return self._base_response.content

    @property
    def text(self) -> str:
        return self._base_response.text

    @property
    def is_redirect(self) -> bool:
        return self.status_code in REDIRECT_STATUSES

    @property
    def is_json(self) -> bool:
        return "json" in self.headers.get("content-type", "")

    @property
    def session(self) -> Mapping[str, Any]:
        """Session data; resolved through the context when not given explicitly."""
        if self._session is None:
            resolver = self._context.session_resolver
            resolved = resolver(self._base_response) if resolver else None
            self._session = resolved if resolved is not None else {}
        return self._session

    def json(self, key: Optional[str] = None) -> Any:
        """
        Decode the response body.

        Args:
            key: Optional dotted path into the decoded body.

        Raises:
            AssertionFailedError: If the body is not valid JSON.
        """
        if self._decoded is MISSING:
            try:
                self._decoded = json.loads(self.content)
            except ValueError:
                self.fail("Invalid JSON was returned from the route.")
        return data_get(self._decoded, key)

    def fail(self, message: str) -> NoReturn:
        """Raise an assertion failure with the given message."""
        raise AssertionFailedError(message)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def _status_details(self) -> str:
        if not self.is_json or not self.content:
            return ""
        try:
            errors = data_get(json.loads(self.content), "errors")
        except ValueError:
            return ""
        if not errors:
            return ""
        return (
            "\n\nThe following errors occurred during the last request:\n\n" + dump(errors)
        )

    def assert_status(self, status: int) -> TestResponse:
        """Assert that the response has the given status code."""
        actual = self.status_code
        if actual != status:
            raise ExpectationFailedError(
                f"Expected response status code [{status}] but received {actual}."
                + self._status_details(),
                expected=status,
                actual=actual,
            )
        return self

    def assert_successful(self) -> TestResponse:
        """Assert that the response has a 2xx status code."""
        if not 200 <= self.status_code < 300:
            raise ExpectationFailedError(
                f"Response status code [{self.status_code}] is not a successful status code."
                + self._status_details(),
                expected=">=200, <300",
                actual=self.status_code,
            )
        return self

    def assert_ok(self) -> TestResponse:
        return self.assert_status(200)

    def assert_created(self) -> TestResponse:
        return self.assert_status(201)

    def assert_unauthorized(self) -> TestResponse:
        return self.assert_status(401)

    def assert_forbidden(self) -> TestResponse:
        return self.assert_status(403)

    def assert_not_found(self) -> TestResponse:
        return self.assert_status(404)

    def assert_no_content(self, status: int = 204) -> TestResponse:
        """Assert that the response has the given status code and an empty body."""
        self.assert_status(status)
        if self.content:
            raise ExpectationFailedError(
                "Response content is not empty.",
                actual=_preview(self.text),
            )
        return self

    # -------------------------------------------------------------------------
    # Redirects
    # -------------------------------------------------------------------------

    def assert_redirect(self, uri: Optional[str] = None) -> TestResponse:
        """Assert that the response is a redirect, optionally to ``uri``."""
        if not self.is_redirect:
            statuses = ", ".join(str(s) for s in REDIRECT_STATUSES)
            raise ExpectationFailedError(
                f"Expected response status code [{statuses}] but received {self.status_code}.",
                expected=list(REDIRECT_STATUSES),
                actual=self.status_code,
            )
        if uri is not None:
            self.assert_location(uri)
        return self

    def assert_location(self, uri: str) -> TestResponse:
        """Assert that the Location header resolves to the same URL as ``uri``."""
        urls = self._context.urls
        expected = urls.to(uri)
        actual = urls.to(self.headers.get("location", ""))
        if expected != actual:
            raise ExpectationFailedError(
                f"Failed asserting that location [{actual}] matches [{expected}].",
                expected=expected,
                actual=actual,
            )
        return self

    def assert_redirect_to_signed_route(
        self,
        name: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> TestResponse:
        """
        Assert that the response redirects to a validly signed URL.

        Args:
            name: Optional route name the redirect must point at.
            parameters: Parameters used to build the named route.

        Raises:
            ConfigurationError: If no signing key is configured.
        """
        signer = self._context.require_signer()
        urls = self._context.urls
        expected = urls.route(name, parameters) if name is not None else None

        self.assert_redirect()

        location = urls.to(self.headers.get("location", ""))
        if not signer.has_valid_signature(location):
            self.fail("The response is not a redirect to a signed route.")

        if expected is not None:
            actual = strip_signature(location)
            if not urls_match(urls.to(actual), expected):
                raise ExpectationFailedError(
                    f"Failed asserting that the redirect [{actual}] matches the signed route [{name}].",
                    expected=expected,
                    actual=actual,
                )
        return self

    # -------------------------------------------------------------------------
    # Downloads
    # -------------------------------------------------------------------------

    def assert_download(self, filename: Optional[str] = None) -> TestResponse:
        """Assert that the response offers a file download, optionally named ``filename``."""
        header = self.headers.get("content-disposition")
        if header is None:
            self.fail("Response does not offer a file download.")

        parts = header.split(";")
        disposition = parts[0].strip()
        if disposition != "attachment":
            self.fail(
                "Response does not offer a file download.\n"
                f"Disposition [{disposition}] found in header, [attachment] expected."
            )

        if filename is not None:
            message = f"Expected file [{filename}] is not present in Content-Disposition header."
            if len(parts) < 2:
                self.fail(message)

            param, _, value = parts[1].partition("=")
            if param.strip() != "filename":
                self.fail(
                    "Unsupported Content-Disposition header provided.\n"
                    f"Disposition [{param.strip()}] found in header, [filename] expected."
                )
            if value.strip().strip("\"'") != filename:
                self.fail(message)
        return self

    # -------------------------------------------------------------------------
    # Rendered content
    # -------------------------------------------------------------------------

    @staticmethod
    def _needles(values: Strings, escape: bool) -> List[List[str]]:
        """Each needle with its accepted spellings; escaped needles allow every quote style."""
        needles = [str(v) for v in _wrap(values)]
        if not escape:
            return [[n] for n in needles]
        return [_escaped_forms(n) for n in needles]

    def _assert_contains(self, haystack: str, values: Strings, escape: bool) -> None:
        for forms in self._needles(values, escape):
            if not any(form in haystack for form in forms):
                raise ExpectationFailedError(
                    f"Failed asserting that '{_preview(haystack)}' contains \"{forms[0]}\".",
                    expected=forms[0],
                )

    def _assert_in_order(self, haystack: str, values: Sequence[str], escape: bool) -> None:
        position = 0
        for forms in self._needles(values, escape):
            hits = []
            for form in forms:
                found = haystack.find(form, position)
                if found != -1:
                    hits.append((found, form))
            if not hits:
                raise ExpectationFailedError(
                    f"Failed asserting that '{_preview(haystack)}' contains \"{forms[0]}\" "
                    "in specified order.",
                    expected=list(values),
                )
            found, form = min(hits)
            position = found + len(form)

    def stripped_text(self) -> str:
        """Response body with HTML tags and comments removed."""
        return _TAGS.sub("", self.text)

    def assert_see(self, value: Strings, escape: bool = True) -> TestResponse:
        """Assert that the body contains the string(s)."""
        self._assert_contains(self.text, value, escape)
        return self

    def assert_see_in_order(self, values: Sequence[str], escape: bool = True) -> TestResponse:
        """Assert that the body contains the strings in order."""
        self._assert_in_order(self.text, values, escape)
        return self

    def assert_see_text(self, value: Strings, escape: bool = True) -> TestResponse:
        """Assert that the tag-stripped body contains the string(s)."""
        self._assert_contains(self.stripped_text(), value, escape)
        return self

    def assert_see_text_in_order(
        self, values: Sequence[str], escape: bool = True
    ) -> TestResponse:
        """Assert that the tag-stripped body contains the strings in order."""
        self._assert_in_order(self.stripped_text(), values, escape)
        return self

    # -------------------------------------------------------------------------
    # JSON
    # -------------------------------------------------------------------------

    def assert_json(
        self,
        value: Union[Mapping[str, Any], Sequence[Any], Callable[[Any], Any]],
        strict: bool = False,
    ) -> TestResponse:
        """
        Assert that the decoded body is a superset of ``value``.

        Args:
            value: Expected subset, or a callable receiving the decoded body.
            strict: Also require matching scalar types.
        """
        data = self.json()

        if callable(value):
            if value(data) is False:
                self.fail("The given callback rejected the response JSON.")
            return self

        if not is_subset(value, data, strict):
            raise ExpectationFailedError(
                "Unable to find JSON:\n\n"
                f"{dump(value)}\n\nwithin response JSON:\n\n{dump(data)}.",
                expected=value,
                actual=data,
            )
        return self

    def assert_exact_json(self, data: Any) -> TestResponse:
        """Assert that the decoded body is exactly ``data``."""
        actual = self.json()
        expected = json.loads(json.dumps(data, default=str))
        if not is_identical(expected, actual):
            raise ExpectationFailedError(
                "Failed asserting that the response JSON is exactly:\n\n"
                f"{dump(expected)}\n\nActual JSON:\n\n{dump(actual)}",
                expected=expected,
                actual=actual,
            )
        return self

    def assert_json_fragment(self, data: Mapping[str, Any]) -> TestResponse:
        """Assert that the body contains the key/value pairs of ``data``."""
        actual = self.json()
        if not contains_fragment(actual, data):
            raise ExpectationFailedError(
                "Unable to find JSON fragment:\n\n"
                f"[{dump(data)}]\n\nwithin\n\n[{dump(actual)}].",
                expected=data,
            )
        return self

    def assert_json_structure(
        self,
        structure: Optional[Any] = None,
        response_data: Optional[Any] = None,
    ) -> TestResponse:
        """Assert that the body (or ``response_data``) has the given key structure."""
        if structure is None:
            self.json()
            return self

        data = response_data if response_data is not None else self.json()
        assert_structure(structure, data)
        return self

    def assert_json_path(self, path: str, expect: Any) -> TestResponse:
        """
        Assert the value at ``path``.

        A callable ``expect`` receives the value and must return something
        truthy; any other ``expect`` must be identical in value and type.
        """
        actual = self.json(path)

        if callable(expect):
            if not expect(actual):
                raise ExpectationFailedError(
                    f"The value at path [{path}] did not pass the given callback.",
                    actual=actual,
                )
            return self

        if not is_identical(expect, actual):
            raise ExpectationFailedError(
                f"Failed asserting that {actual!r} is identical to {expect!r} at path [{path}].",
                expected=expect,
                actual=actual,
            )
        return self

    # -------------------------------------------------------------------------
    # Validation errors
    # -------------------------------------------------------------------------

    def assert_json_validation_errors(
        self, errors: Any = None, response_key: str = "errors"
    ) -> TestResponse:
        """
        Assert that the JSON body has validation errors for the given keys.

        ``errors`` may be a key, a list of keys, or a mapping of key to the
        message text (or list of texts) the error must contain.
        """
        items = _error_items(errors)
        if not items:
            self.fail("No validation errors were provided.")

        json_errors = self.json(response_key) or {}
        if json_errors:
            error_message = (
                "Response has the following JSON validation errors:\n\n" + dump(json_errors)
            )
        else:
            error_message = "Response does not have JSON validation errors."

        for key, value in items:
            if key not in json_errors:
                self.fail(
                    f"Failed to find a validation error in the response for key: '{key}'"
                    f"\n\n{error_message}"
                )
            if value is None:
                continue

            messages = [str(m) for m in _wrap(json_errors[key])]
            for expected_message in _wrap(value):
                if not any(str(expected_message) in m for m in messages):
                    self.fail(
                        "Failed to find a validation error in the response for key and "
                        f"message: '{key}' => '{expected_message}'\n\n{error_message}"
                    )
        return self

    def assert_json_missing_validation_errors(
        self, keys: Any = None, response_key: str = "errors"
    ) -> TestResponse:
        """Assert that the JSON body has no validation errors (for the given keys)."""
        if not self.content:
            return self

        data = self.json()
        if not data_has(data, response_key):
            return self

        errors = data_get(data, response_key) or {}
        if keys is None:
            if errors:
                self.fail("Response has unexpected validation errors:\n\n" + dump(errors))
            return self

        for key in _wrap(keys):
            if key in errors:
                self.fail(f"Found unexpected validation error for key: '{key}'\n\n{dump(errors)}")
        return self

    def session_errors(self, error_bag: str = "default") -> Mapping[str, Any]:
        """
        Validation errors stored in the session under ``errors``.

        The stored value is either a mapping of bag name to errors or, for the
        default bag, the flat mapping of field to messages.
        """
        stored = data_get(self.session, "errors")
        if not isinstance(stored, Mapping) or not stored:
            return {}
        bag = stored.get(error_bag)
        if isinstance(bag, Mapping):
            return bag
        if error_bag == "default":
            return {k: v for k, v in stored.items() if not isinstance(v, Mapping)}
        return {}

    def assert_valid(
        self,
        keys: Any = None,
        error_bag: str = "default",
        response_key: str = "errors",
    ) -> TestResponse:
        """Assert that the response has no validation errors (for the given keys)."""
        if self.is_json:
            return self.assert_json_missing_validation_errors(keys, response_key)

        errors = self.session_errors(error_bag)
        if not errors:
            return self

        if keys is None:
            self.fail("Response has unexpected validation errors:\n\n" + dump(errors))

        for key in _wrap(keys):
            if key in errors:
                self.fail(f"Found unexpected validation error for key: '{key}'\n\n{dump(errors)}")
        return self

    def assert_invalid(
        self,
        errors: Any = None,
        error_bag: str = "default",
        response_key: str = "errors",
    ) -> TestResponse:
        """
        Assert that the response has validation errors for the given keys.

        JSON responses are checked through their body; others through the
        session, where message values are matched with shell-style wildcards;
        a list of patterns passes when any of them matches.
        """
        if self.is_json:
            return self.assert_json_validation_errors(errors, response_key)

        self.assert_session_has("errors")
        session_errors = self.session_errors(error_bag)
        if session_errors:
            error_message = (
                "Response has the following validation errors in the session:\n\n"
                + dump(session_errors)
            )
        else:
            error_message = "Response does not have validation errors in the session."

        for key, value in _error_items(errors):
            if key not in session_errors:
                self.fail(
                    f"Failed to find a validation error in session for key: '{key}'"
                    f"\n\n{error_message}"
                )
            if value is None:
                continue

            messages = [str(m) for m in _wrap(session_errors[key])]
            patterns = [str(p) for p in _wrap(value)]
            if not any(fnmatch.fnmatchcase(m, p) for p in patterns for m in messages):
                self.fail(
                    f"Failed to find a validation error for key and message: '{key}' => "
                    f"'{', '.join(patterns)}'\n\n{error_message}"
                )
        return self

    # -------------------------------------------------------------------------
    # Headers
    # -------------------------------------------------------------------------

    def assert_header(self, name: str, value: Any = None) -> TestResponse:
        """Assert that the header is present and, optionally, equals ``value``."""
        if name not in self.headers:
            self.fail(f"Header [{name}] not present on response.")

        if value is not None:
            actual = self.headers.get(name)
            if actual != value and actual != str(value):
                raise ExpectationFailedError(
                    f"Header [{name}] was found, but value [{actual}] does not match [{value}].",
                    expected=value,
                    actual=actual,
                )
        return self

    def assert_header_missing(self, name: str) -> TestResponse:
        """Assert that the header is not present."""
        if name in self.headers:
            self.fail(f"Unexpected header [{name}] is present on response.")
        return self

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def assert_session_has(self, key: Any, value: Any = None) -> TestResponse:
        """
        Assert that the session has ``key`` (dot notation) and, optionally, ``value``.

        A callable ``value`` receives the stored value and must return something
        truthy. A list or mapping ``key`` is checked with ``assert_session_has_all``.
        """
        if isinstance(key, (Mapping, list, tuple)):
            return self.assert_session_has_all(key)

        session = self.session

        if value is None:
            if not data_has(session, key):
                self.fail(f"Session is missing expected key [{key}].")
        elif callable(value):
            if not value(data_get(session, key)):
                self.fail(f"Session value at [{key}] did not pass the given callback.")
        else:
            actual = data_get(session, key)
            if actual != value:
                raise ExpectationFailedError(
                    f"Session value at [{key}] does not match the expected value.",
                    expected=value,
                    actual=actual,
                )
        return self

    def assert_session_has_all(
        self, bindings: Union[Mapping[str, Any], Iterable[Any]]
    ) -> TestResponse:
        """Assert every key (for iterables) or key/value pair (for mappings)."""
        for key, value in _error_items(bindings):
            self.assert_session_has(key, value)
        return self
