"""URL generation and signing for redirect assertions."""

from http_expectations.routing.urls import UrlGenerator, UrlSigner, strip_signature, urls_match

__all__ = ["UrlGenerator", "UrlSigner", "strip_signature", "urls_match"]
