"""Logging for the GitHub tools server, built on loguru.

Everything is written to stderr; stdout carries the MCP stdio transport.

Console lines show the bound ``tool`` (MCP tool being served) and
``operation`` (GitHub operation being executed) when present:

    12:04:31 | WARNING  | github [tool=create_issue operation=create_issue] - ...
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from loguru import Logger, Record

    from github_tools.config import LoggingConfig

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# githubkit talks through httpx; the MCP SDK logs through stdlib logging too
_INTERCEPTED_LOGGERS = ("httpx", "httpcore", "mcp")

_CONTEXT_KEYS = ("tool", "operation")

_configured = False


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _console_format(record: Record) -> str:
    extra = record["extra"]
    source = "{extra[name]}" if "name" in extra else "{name}"
    context = " ".join(f"{key}={{extra[{key}]}}" for key in _CONTEXT_KEYS if key in extra)
    if context:
        source += f" <magenta>[{context}]</magenta>"
    return (
        "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | "
        f"<cyan>{source}</cyan> - <level>{{message}}</level>\n{{exception}}"
    )


def _resolve_level(level: LogLevel, verbose: bool, quiet: bool) -> LogLevel:
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return level


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    config: LoggingConfig | None = None,
) -> Logger:
    """Configure loguru sinks for the server and CLI.

    Args:
        level: Base level (usually ``Settings.log_level``)
        verbose: Force DEBUG; wins over ``quiet``
        quiet: Force WARNING
        config: File sink options; no file sink if absent or without log_file

    Returns:
        The configured loguru logger
    """
    global _configured

    effective = _resolve_level(level, verbose, quiet)
    logger.remove()
    logger.add(sys.stderr, level=effective, format=_console_format, diagnose=False)

    if config is not None and config.log_file:
        logger.add(
            config.log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
            "{name}:{function}:{line} | {extra} | {message}",
            rotation=config.rotation,
            retention=config.retention,
            compression="gz",
            serialize=config.serialize,
        )

    _intercept_stdlib_logging(effective)
    _configured = True
    return logger


def _intercept_stdlib_logging(level: LogLevel) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    library_level = logging.DEBUG if level in ("TRACE", "DEBUG") else logging.WARNING
    for name in _INTERCEPTED_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> Logger:
    """Module logger: ``logger = get_logger(__name__)``."""
    return logger.bind(name=name)


def bind_operation(operation: str, **context: Any) -> Logger:
    """Logger for one GitHub operation, e.g. ``bind_operation("merge_pull_request")``."""
    return logger.bind(name="github", operation=operation, **context)


def tool_context(tool: str, **context: Any) -> AbstractContextManager[None]:
    """Tag every log record emitted while serving an MCP tool call.

    Usage:
        with tool_context("list_branches"):
            result = await service.list_branches(request)
    """
    return logger.contextualize(tool=tool, **context)


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Drop all sinks (closing file sinks) and mark logging unconfigured."""
    global _configured
    logger.remove()
    _configured = False
