"""Expectation logger recording every invocation and its outcome."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class Outcome(Enum):
    """Outcome of an expectation event."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    REGISTERED = "registered"


@dataclass
class ExpectationEvent:
    """Represents a logged expectation event."""

    timestamp: datetime
    outcome: Outcome
    name: str
    subject: Optional[str] = None
    arguments: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    test_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "outcome": self.outcome.value,
            "name": self.name,
            "subject": self.subject,
            "arguments": self.arguments,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "test_id": self.test_id,
        }


class ColoredFormatter(logging.Formatter):
    """Formatter with color support for console output."""

    COLORS = {
        "RESET": "\033[0m",
        "GREEN": "\033[92m",
        "RED": "\033[91m",
        "YELLOW": "\033[93m",
        "CYAN": "\033[96m",
    }

    OUTCOME_COLORS = {
        Outcome.PASSED: "GREEN",
        Outcome.FAILED: "RED",
        Outcome.ERROR: "YELLOW",
        Outcome.REGISTERED: "CYAN",
    }

    OUTCOME_SYMBOLS = {
        Outcome.PASSED: "✓",
        Outcome.FAILED: "✗",
        Outcome.ERROR: "!",
        Outcome.REGISTERED: "+",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "expectation_event", None)

        if event and isinstance(event, ExpectationEvent):
            return self._format_event(event)

        return super().format(record)

    def _format_event(self, event: ExpectationEvent) -> str:
        timestamp = event.timestamp.strftime("%H:%M:%S.%f")[:-3]

        parts = [
            f"[{timestamp}]",
            self.OUTCOME_SYMBOLS.get(event.outcome, "?"),
            f"{event.name}({event.arguments or ''})",
        ]

        if event.subject:
            parts.append(f"on {event.subject}")

        if event.duration_ms is not None:
            parts.append(f"({event.duration_ms:.1f}ms)")

        if event.error:
            error = event.error.splitlines()[0]
            parts.append(f"- {error}")

        text = " ".join(parts)

        if self.use_colors:
            color = self.OUTCOME_COLORS.get(event.outcome, "RESET")
            return f"{self.COLORS[color]}{text}{self.COLORS['RESET']}"
        return text


def describe_arguments(args: tuple, kwargs: Dict[str, Any], limit: int = 120) -> str:
    """Render call arguments compactly for logs and reports."""
    rendered = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
    text = ", ".join(rendered)
    return text[:limit] + "..." if len(text) > limit else text


class ExpectationLogger:
    """
    Logger for expectation invocations.

    Provides:
    - Pass/fail/error tracking per expectation name
    - Console output with colors
    - JSON export for debugging
    - Event history, optionally scoped to the running test
    """

    def __init__(
        self,
        name: str = "http_expectations",
        level: str = "INFO",
        log_to_console: bool = True,
        log_to_file: Optional[Path] = None,
        use_colors: bool = True,
    ):
        """
        Initialize expectation logger.

        Args:
            name: Logger name.
            level: Logging level (DEBUG, INFO, WARNING, ERROR).
            log_to_console: Whether to log to console.
            log_to_file: Optional path to log file.
            use_colors: Whether to use colors in console output.
        """
        self._name = name
        self._logger = logging.getLogger(f"http_expectations.{name}")
        self._logger.setLevel(getattr(logging, level.upper()))
        self._events: List[ExpectationEvent] = []
        self._test_id: Optional[str] = None

        # Prevent duplicate handlers
        self._logger.handlers.clear()

        if log_to_console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))
            self._logger.addHandler(console_handler)

        if log_to_file:
            file_handler = logging.FileHandler(log_to_file)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
            )
            self._logger.addHandler(file_handler)

    def bind_test(self, test_id: Optional[str]) -> None:
        """Attach subsequent events to ``test_id`` (None detaches)."""
        self._test_id = test_id

    def log_passed(
        self,
        name: str,
        subject: Optional[str] = None,
        arguments: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Log an expectation that held."""
        self._record(
            Outcome.PASSED,
            name,
            subject=subject,
            arguments=arguments,
            duration_ms=duration_ms,
        )

    def log_failed(
        self,
        name: str,
        error: str,
        subject: Optional[str] = None,
        arguments: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Log an expectation whose assertion failed."""
        self._record(
            Outcome.FAILED,
            name,
            subject=subject,
            arguments=arguments,
            duration_ms=duration_ms,
            error=error,
            level=logging.WARNING,
        )

    def log_error(self, name: str, error: str) -> None:
        """Log a configuration error raised while invoking ``name``."""
        self._record(Outcome.ERROR, name, error=error, level=logging.ERROR)

    def log_registration(self, name: str, replaced: bool = False) -> None:
        """Log that an expectation was registered."""
        self._record(
            Outcome.REGISTERED,
            name,
            error="replaced an existing expectation" if replaced else None,
            level=logging.DEBUG,
        )

    def _record(
        self,
        outcome: Outcome,
        name: str,
        level: int = logging.INFO,
        **fields: Any,
    ) -> None:
        event = ExpectationEvent(
            timestamp=datetime.now(),
            outcome=outcome,
            name=name,
            test_id=self._test_id,
            **fields,
        )
        self._events.append(event)

        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="",
            lno=0,
            msg=f"{outcome.value}: {name}",
            args=(),
            exc_info=None,
        )
        record.expectation_event = event
        if self._logger.isEnabledFor(level):
            self._logger.handle(record)

    def get_events(
        self,
        name: Optional[str] = None,
        outcome: Optional[Outcome] = None,
        test_id: Optional[str] = None,
    ) -> List[ExpectationEvent]:
        """
        Get logged events with optional filtering.

        Args:
            name: Filter by expectation name.
            outcome: Filter by outcome.
            test_id: Filter by the test the event was recorded in.

        Returns:
            List of matching events.
        """
        events = self._events

        if name:
            events = [e for e in events if e.name == name]

        if outcome:
            events = [e for e in events if e.outcome == outcome]

        if test_id:
            events = [e for e in events if e.test_id == test_id]

        return list(events)

    def export_to_json(self, filepath: Path | str) -> None:
        """Export all events to JSON file."""
        data = [event.to_dict() for event in self._events]

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def clear(self) -> None:
        """Clear event history."""
        self._events.clear()

    def close(self) -> None:
        """Detach and close the console and file handlers."""
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

    @property
    def event_count(self) -> int:
        """Get total number of logged events."""
        return len(self._events)
