"""Pydantic models for expectation configuration."""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ExpectationsConfig(BaseModel):
    """Root configuration model for response expectations."""

    app_url: str = Field(
        "http://localhost", description="Base URL that relative URIs are resolved against"
    )
    app_key: Optional[str] = Field(
        None, description="Secret used to verify signed route redirects"
    )
    routes: Dict[str, str] = Field(
        default_factory=dict, description="Named routes mapped to path templates"
    )
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_expectations: bool = Field(
        False, description="Whether to log each expectation to the console"
    )
    warn_on_overwrite: bool = Field(
        False, description="Whether re-registering an expectation name logs a warning"
    )

    @field_validator("app_url")
    @classmethod
    def validate_app_url(cls, v: str) -> str:
        """Validate that the application URL is absolute."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Application URL must be absolute: {v}")
        return v.rstrip("/")

    @field_validator("routes")
    @classmethod
    def validate_routes(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Validate route names and templates."""
        for name, template in v.items():
            if not name.strip():
                raise ValueError("Route name cannot be empty")
            if not template.startswith("/"):
                raise ValueError(f"Route [{name}] template must start with '/': {template}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @property
    def signing_enabled(self) -> bool:
        return bool(self.app_key)
