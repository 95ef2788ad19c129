"""Turn any supported subject into a TestResponse."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from http_expectations.exceptions import UnsupportedSubjectError
from http_expectations.response.context import ResponseContext
from http_expectations.response.testing import TestResponse


def to_test_response(subject: Any, context: Optional[ResponseContext] = None) -> TestResponse:
    """
    Normalize a subject to its canonical form.

    Args:
        subject: An ``httpx.Response`` or a ``TestResponse``.
        context: Context for newly wrapped responses. Existing TestResponse
            objects keep their own context.

    Returns:
        ``subject`` itself when it already is a TestResponse, otherwise a new
        TestResponse wrapping it.

    Raises:
        UnsupportedSubjectError: For any other kind of subject.
    """
    if isinstance(subject, TestResponse):
        return subject
    if isinstance(subject, httpx.Response):
        return TestResponse.from_base_response(subject, context=context)
    raise UnsupportedSubjectError(subject)
