"""Registry of named expectations and the chainable handle that invokes them."""

from __future__ import annotations

import functools
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from http_expectations.exceptions import ConfigurationError, UnknownExpectationError
from http_expectations.logging.expectation_logger import describe_arguments
from http_expectations.response.context import ResponseContext
from http_expectations.response.normalizer import to_test_response

if TYPE_CHECKING:
    from http_expectations.logging.expectation_logger import ExpectationLogger
    from http_expectations.response.testing import TestResponse

logger = logging.getLogger(__name__)

Handler = Callable[..., Optional["Expectation"]]


class Expectation:
    """
    Chainable handle over a subject.

    Registered expectation names are available as methods; each returns the
    handle so further expectations can follow.

    Usage:
        registry.expect(response).to_be_ok().to_have_header("ETag")
    """

    # Names reserved by the handle itself; expectations cannot use them.
    RESERVED = frozenset({"value", "registry", "response", "and_"})

    def __init__(self, value: Any, registry: ExpectationRegistry):
        self.value = value
        self.registry = registry

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_") or name in self.RESERVED:
            raise AttributeError(name)
        if name not in self.registry:
            raise UnknownExpectationError(name, self.registry.names)
        return functools.partial(self.registry.invoke, self, name)

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(self.registry.names))

    def __repr__(self) -> str:
        return f"Expectation({self.value!r})"

    @property
    def response(self) -> TestResponse:
        """The subject normalized to a TestResponse."""
        return to_test_response(self.value, self.registry.context)

    def and_(self, value: Any) -> Expectation:
        """Start a new chain on another subject with the same registry."""
        return Expectation(value, self.registry)


class ExpectationRegistry:
    """
    Table of named expectations.

    Built once per test session and handed to whatever creates expectation
    chains. Registering a name twice replaces the earlier handler.
    """

    def __init__(
        self,
        context: Optional[ResponseContext] = None,
        expectation_logger: Optional[ExpectationLogger] = None,
        warn_on_overwrite: bool = False,
    ):
        """
        Initialize registry.

        Args:
            context: Context used when normalizing subjects to TestResponse.
            expectation_logger: Optional logger recording every invocation.
            warn_on_overwrite: Log a warning when a name is registered twice.
        """
        self._handlers: Dict[str, Handler] = {}
        self._context = context or ResponseContext()
        self._expectation_logger = expectation_logger
        self._warn_on_overwrite = warn_on_overwrite

    @property
    def context(self) -> ResponseContext:
        return self._context

    @property
    def names(self) -> List[str]:
        """Registered expectation names, sorted."""
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def register(self, name: str, handler: Handler) -> None:
        """
        Register ``handler`` under ``name``.

        The handler is called as ``handler(expectation, *args, **kwargs)``.

        Raises:
            ConfigurationError: If the name is not a public identifier, is
                reserved by the handle, or the handler is not callable.
        """
        if not name.isidentifier() or name.startswith("_"):
            raise ConfigurationError(f"Invalid expectation name: '{name}'")
        if name in Expectation.RESERVED:
            raise ConfigurationError(f"Expectation name '{name}' is reserved")
        if not callable(handler):
            raise ConfigurationError(f"Handler for '{name}' is not callable")

        replaced = name in self._handlers
        if replaced:
            if self._warn_on_overwrite:
                logger.warning(f"Expectation '{name}' registered again; the new handler wins")
            else:
                logger.debug(f"Replacing expectation '{name}'")

        self._handlers[name] = handler

        if self._expectation_logger:
            self._expectation_logger.log_registration(name, replaced=replaced)

    def extend(self, name: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of :meth:`register`.

        Usage:
            @registry.extend("to_be_teapot")
            def to_be_teapot(expectation):
                expectation.response.assert_status(418)
                return expectation
        """

        def decorator(handler: Handler) -> Handler:
            self.register(name, handler)
            return handler

        return decorator

    def get(self, name: str) -> Handler:
        """
        Look up a handler.

        Raises:
            UnknownExpectationError: If nothing is registered under ``name``.
        """
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownExpectationError(name, self.names) from None

    def invoke(self, expectation: Expectation, name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Run the expectation ``name`` against the handle's subject.

        Returns:
            The handler's result, or ``expectation`` when the handler returns None.

        Raises:
            UnknownExpectationError: If ``name`` is not registered.
            AssertionError: If the expectation does not hold.
        """
        log = self._expectation_logger
        if name not in self._handlers and log:
            log.log_error(name, "no such expectation")
        handler = self.get(name)
        subject = repr(expectation.value)[:80]
        arguments = describe_arguments(args, kwargs)

        start_time = time.perf_counter()
        try:
            result = handler(expectation, *args, **kwargs)
        except AssertionError as e:
            if log:
                log.log_failed(
                    name,
                    str(e),
                    subject=subject,
                    arguments=arguments,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                )
            raise
        except ConfigurationError as e:
            if log:
                log.log_error(name, str(e))
            raise

        if log:
            log.log_passed(
                name,
                subject=subject,
                arguments=arguments,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        return expectation if result is None else result

    def expect(self, value: Any) -> Expectation:
        """Create a chainable handle over ``value``."""
        return Expectation(value, self)
