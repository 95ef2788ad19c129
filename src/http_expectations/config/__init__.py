"""Configuration module for http-expectations."""

from http_expectations.config.models import ExpectationsConfig
from http_expectations.config.loader import ConfigLoader

__all__ = ["ExpectationsConfig", "ConfigLoader"]
