"""URL generation and signed URL verification."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from http_expectations.exceptions import RouteNotDefinedError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)(\?)?\}")

SIGNATURE_PARAMETERS = ("signature", "expires")


def strip_signature(url: str) -> str:
    """Remove the ``signature`` and ``expires`` query parameters from ``url``."""
    parsed = httpx.URL(url)
    params = [(k, v) for k, v in parsed.params.multi_items() if k not in SIGNATURE_PARAMETERS]
    return _with_query(parsed, params)


def _with_query(url: httpx.URL, params: List[Tuple[str, str]]) -> str:
    base = str(url).split("#", 1)[0].split("?", 1)[0]
    if not params:
        return base
    return f"{base}?{httpx.QueryParams(params)}"


def urls_match(first: str, second: str) -> bool:
    """Compare two URLs ignoring query parameter order and a trailing slash."""
    a, b = httpx.URL(first), httpx.URL(second)
    if _with_query(a, []).rstrip("/") != _with_query(b, []).rstrip("/"):
        return False
    return sorted(a.params.multi_items()) == sorted(b.params.multi_items())


class UrlGenerator:
    """
    Resolve URIs against the application URL and build named routes.

    Usage:
        urls = UrlGenerator("http://localhost", {"post": "/posts/{post}"})
        urls.to("/home")                      # http://localhost/home
        urls.route("post", {"post": 3, "q": "x"})  # http://localhost/posts/3?q=x
    """

    def __init__(
        self,
        app_url: str = "http://localhost",
        routes: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize URL generator.

        Args:
            app_url: Base URL that relative URIs are resolved against.
            routes: Mapping of route name to path template.
        """
        self._app_url = httpx.URL(app_url)
        self._routes: Dict[str, str] = dict(routes or {})

    @property
    def app_url(self) -> str:
        return str(self._app_url).rstrip("/")

    @property
    def route_names(self) -> List[str]:
        return list(self._routes)

    def to(self, uri: str) -> str:
        """Return ``uri`` as an absolute URL without a trailing slash."""
        url = httpx.URL(uri)
        if not url.is_absolute_url:
            url = self._app_url.join(uri)
        return str(url).rstrip("/")

    def route(self, name: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        """
        Build the absolute URL of a named route.

        Parameters not consumed by a ``{placeholder}`` are appended as query
        string in the order given.

        Raises:
            RouteNotDefinedError: If the route is unknown or a required
                placeholder has no value.
        """
        template = self._routes.get(name)
        if template is None:
            available = ", ".join(self._routes) or "(none)"
            raise RouteNotDefinedError(
                f"Route [{name}] not defined. Available routes: {available}"
            )

        remaining = dict(parameters or {})

        def substitute(match: re.Match) -> str:
            key, optional = match.group(1), match.group(2)
            if key in remaining:
                return str(remaining.pop(key))
            if optional:
                return ""
            raise RouteNotDefinedError(
                f"Missing required parameter [{key}] for route [{name}]."
            )

        path = _PLACEHOLDER.sub(substitute, template)
        path = re.sub(r"/{2,}", "/", path)
        url = self.to(path)

        if remaining:
            query = httpx.QueryParams({k: str(v) for k, v in remaining.items()})
            url = f"{url}?{query}"
        return url


class UrlSigner:
    """
    Sign URLs with HMAC-SHA256 and verify them.

    A signed URL carries a ``signature`` query parameter computed over the URL
    without it, and optionally an ``expires`` unix timestamp.
    """

    def __init__(self, key: str):
        """
        Initialize URL signer.

        Args:
            key: Application secret used for the HMAC.
        """
        if not key:
            raise ValueError("Signing key cannot be empty")
        self._key = key.encode("utf-8")

    def _signature(self, url: str) -> str:
        return hmac.new(self._key, url.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, url: str, expires: Optional[int] = None) -> str:
        """
        Sign ``url``.

        Args:
            url: Absolute URL to sign.
            expires: Optional unix timestamp after which the signature is invalid.

        Returns:
            The URL with sorted query parameters and a ``signature`` parameter.
        """
        parsed = httpx.URL(url)
        params = [(k, v) for k, v in parsed.params.multi_items() if k != "signature"]
        if expires is not None:
            params = [(k, v) for k, v in params if k != "expires"]
            params.append(("expires", str(int(expires))))
        params.sort(key=lambda item: item[0])

        unsigned = _with_query(parsed, params)
        params.append(("signature", self._signature(unsigned)))
        return _with_query(parsed, params)

    def has_valid_signature(self, url: str) -> bool:
        """Check the signature of ``url`` and that it has not expired."""
        parsed = httpx.URL(url)
        signature = parsed.params.get("signature")
        if not signature:
            return False

        params = [(k, v) for k, v in parsed.params.multi_items() if k != "signature"]
        original = _with_query(parsed, params)

        if not hmac.compare_digest(self._signature(original), signature):
            logger.debug(f"Signature mismatch for URL: {original}")
            return False

        expires = parsed.params.get("expires")
        if expires:
            try:
                if time.time() > int(expires):
                    logger.debug(f"Signed URL expired at {expires}: {original}")
                    return False
            except ValueError:
                return False
        return True

    def signed_route(
        self,
        urls: UrlGenerator,
        name: str,
        parameters: Optional[Mapping[str, Any]] = None,
        expires: Optional[int] = None,
    ) -> str:
        """Build and sign the URL of a named route."""
        return self.sign(urls.route(name, parameters), expires=expires)
