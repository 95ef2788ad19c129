"""Application context that response assertions resolve against."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

import httpx

from http_expectations.exceptions import ConfigurationError
from http_expectations.routing.urls import UrlGenerator, UrlSigner

if TYPE_CHECKING:
    from http_expectations.config.models import ExpectationsConfig

SessionResolver = Callable[[httpx.Response], Optional[Mapping[str, Any]]]


@dataclass
class ResponseContext:
    """
    Everything a TestResponse needs beyond the response itself.

    Attributes:
        urls: Resolves relative URIs and named routes.
        signer: Verifies signed route redirects; None when no key is configured.
        session_resolver: Optional callable returning the session data for a
            base response.
    """

    urls: UrlGenerator = field(default_factory=UrlGenerator)
    signer: Optional[UrlSigner] = None
    session_resolver: Optional[SessionResolver] = None

    @classmethod
    def from_config(
        cls,
        config: ExpectationsConfig,
        session_resolver: Optional[SessionResolver] = None,
    ) -> ResponseContext:
        signer = UrlSigner(config.app_key) if config.app_key else None
        return cls(
            urls=UrlGenerator(config.app_url, config.routes),
            signer=signer,
            session_resolver=session_resolver,
        )

    def require_signer(self) -> UrlSigner:
        if self.signer is None:
            raise ConfigurationError(
                "Signed route assertions need an app_key in the expectations configuration"
            )
        return self.signer
