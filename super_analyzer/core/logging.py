"""
Structured logging configuration for SUPER Analyzer.

Uses structlog for structured logging. On a terminal, events are rendered
with a level prefix (``Warning: ``, ``Error: ``...) through rich markup; in
CI or when stderr is redirected, JSON lines are emitted instead.

Logging is configured once from an explicit LogSettings object. The
``SUPER_LOG`` environment variable, when set, replaces the level derived from
the verbose flag.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable, MutableMapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

LOG_ENV_VAR = "SUPER_LOG"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

_ENV_LEVELS: dict[str, LogLevel] = {
    "debug": "DEBUG",
    "trace": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


def _format_debug(text: str) -> str:
    return f"[bold]Debug: {escape(text)}[/bold]"


def _format_info(text: str) -> str:
    return escape(text)


def _format_warning(text: str) -> str:
    return f"[bold yellow]Warning: [/bold yellow][yellow]{escape(text)}[/yellow]"


def _format_error(text: str) -> str:
    return f"[bold red]Error: [/bold red][red]{escape(text)}[/red]"


# Every level name structlog's add_log_level can produce.
LEVEL_FORMATS: dict[str, Callable[[str], str]] = {
    "debug": _format_debug,
    "info": _format_info,
    "warning": _format_warning,
    "error": _format_error,
    "critical": _format_error,
}


class LogSettings(BaseModel):
    """Process-wide logging settings, built once at startup."""

    level: LogLevel = Field(default="INFO", description="Minimum level emitted")
    json_output: bool = Field(
        default_factory=lambda: not sys.stderr.isatty(),
        description="Emit JSON lines instead of human-readable output",
    )
    env_error: str | None = Field(
        default=None, description="Why the environment override was ignored"
    )

    @classmethod
    def from_env(cls, verbose: bool = False) -> LogSettings:
        """Derive settings from the verbose flag and the environment override."""
        level: LogLevel = "DEBUG" if verbose else "INFO"
        env_value = os.environ.get(LOG_ENV_VAR)
        if env_value is None:
            return cls(level=level)

        env_level = _ENV_LEVELS.get(env_value.strip().lower())
        if env_level is None:
            return cls(
                level=level,
                env_error=f"invalid {LOG_ENV_VAR} value {env_value!r}",
            )
        return cls(level=env_level)

    @property
    def debug_enabled(self) -> bool:
        return self.level == "DEBUG"


class LevelFormatRenderer:
    """Render an event dict as a single level-prefixed console line."""

    def __init__(self, colors: bool = True) -> None:
        self._console = Console(
            force_terminal=colors,
            no_color=not colors,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        level = event_dict.pop("level", method_name)
        event = str(event_dict.pop("event", ""))
        event_dict.pop("timestamp", None)
        exception = event_dict.pop("exception", None)

        text = event
        if event_dict:
            text += " " + " ".join(f"{key}={value}" for key, value in event_dict.items())

        with self._console.capture() as capture:
            self._console.print(LEVEL_FORMATS[level](text), end="")
        rendered = capture.get()
        if exception:
            rendered += "\n" + str(exception)
        return rendered


def setup_logging(settings: LogSettings | None = None) -> None:
    """Configure structured logging for the application.

    Args:
        settings: Logging settings. If None, uses INFO level.
    """
    settings = settings or LogSettings()
    level = getattr(logging, settings.level, logging.INFO)

    # Configure standard library logging
    console = Console(stderr=True)
    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=settings.debug_enabled,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    # Configure structlog
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if settings.json_output:
        processors = shared_processors + [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            LevelFormatRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    if settings.env_error:
        get_logger(__name__).warning(
            "Could not initialize logger from the environment", reason=settings.env_error
        )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured bound logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log entries in this context.

    Args:
        **kwargs: Context key-value pairs to bind
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
