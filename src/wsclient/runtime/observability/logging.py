"""Structured logging for the runtime, client and entry point.

Every record is an event name plus key-value context. Context comes from
three places, merged in this order: the scoped ``log_context`` (carried
across awaits and into spawned tasks), the logger's bound fields, and the
call's own keyword arguments.

Output goes to stderr; stdout belongs to the program.

Quick Start:
    >>> from wsclient.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="console", level="DEBUG")
    >>> log = get_logger("wsclient.client").bind(method="GET")
    >>> log.debug("request submitted", url="http://example.com")
"""

from __future__ import annotations

import inspect
import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, Protocol, TextIO, TypeVar

import orjson

if TYPE_CHECKING:
    from types import TracebackType

P = ParamSpec("P")
T = TypeVar("T")

Fields = dict[str, Any]

_scoped: ContextVar[Fields] = ContextVar("wsclient_log_scope", default={})

# Module globals: worker threads and the loop thread share one configuration
_renderer: list[LogRenderer] = []
_threshold: int = logging.WARNING


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One rendered record."""

    created: float
    level: str
    event: str
    fields: Fields

    @property
    def iso_time(self) -> str:
        return datetime.fromtimestamp(self.created, tz=UTC).isoformat()

    @property
    def clock(self) -> str:
        """Wall clock as HH:MM:SS.mmm (UTC)."""
        return datetime.fromtimestamp(self.created, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(slots=True, frozen=True)
class BoundLogger:
    """Logger carrying a fixed set of fields. ``bind`` returns a new logger."""

    fields: Fields = field(default_factory=dict)

    def bind(self, **kw: Any) -> BoundLogger:
        return BoundLogger({**self.fields, **kw})

    def _emit(self, level: int, event: str, kw: Fields) -> None:
        if level < _threshold:
            return
        record = LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**_scoped.get(), **self.fields, **kw})
        _current_renderer().render(record)

    def debug(self, event: str, **kw: Any) -> None:
        self._emit(logging.DEBUG, event, kw)

    def info(self, event: str, **kw: Any) -> None:
        self._emit(logging.INFO, event, kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._emit(logging.WARNING, event, kw)

    def error(self, event: str, **kw: Any) -> None:
        self._emit(logging.ERROR, event, kw)

    def exception(self, event: str, exc: BaseException | None = None, **kw: Any) -> None:
        """Log at error level with a formatted traceback under ``exc_info``.

        Uses ``exc`` when given (e.g. a stored task failure), otherwise the
        exception currently being handled.
        """
        kw["exc_info"] = "".join(traceback.format_exception(exc)) if exc is not None else traceback.format_exc()
        self._emit(logging.ERROR, event, kw)


class log_context:
    """Add fields to every record logged inside the ``with`` block.

    Tasks created inside the block keep the fields for their whole lifetime.
    """

    __slots__ = ("_fields", "_token")

    def __init__(self, **kw: Any) -> None:
        self._fields: Fields = kw
        self._token: Any = None

    def __enter__(self) -> log_context:
        self._token = _scoped.set({**_scoped.get(), **self._fields})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        _scoped.reset(self._token)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_ANSI = {"debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m"}
_RESET = "\033[0m"


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...`` with the traceback on following lines."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None: color only when output is a terminal

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def render(self, entry: LogEntry) -> None:
        tb = entry.fields.get("exc_info")
        pairs = " ".join(f"{k}={_console_value(v)}" for k, v in sorted(entry.fields.items()) if k != "exc_info")
        level = f"[{entry.level}]"
        if self.colors:
            level = f"{_ANSI.get(entry.level, '')}{level}{_RESET}"
        line = f"{entry.clock} {level} {entry.event}"
        print(f"{line} {pairs}" if pairs else line, file=self.output)
        if tb:
            print(tb.rstrip("\n"), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line."""

    output: TextIO = field(default_factory=lambda: sys.stderr)

    def render(self, entry: LogEntry) -> None:
        doc = {"timestamp": entry.iso_time, "level": entry.level, "event": entry.event, **entry.fields}
        print(orjson.dumps(doc, default=str, option=orjson.OPT_NON_STR_KEYS).decode(), file=self.output)


class NoOpRenderer:
    """Drops every record."""

    def render(self, entry: LogEntry) -> None:
        pass


def _console_value(v: object) -> str:
    match v:
        case str(): return f'"{v}"'
        case bool(): return "true" if v else "false"
        case _: return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "WARNING",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the process-wide renderer and threshold.

    Args:
        format: "console", "json" or "none"
        level: Minimum level name (case-insensitive)
        output: Stream for rendered records (default: stderr)
        colors: Force ANSI colors on or off for the console format

    Raises:
        ValueError: Unknown format
    """
    global _threshold
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stderr)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown log format {format!r}; expected 'console', 'json' or 'none'")
    _threshold = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
    _renderer[:] = [renderer]
    return renderer


def get_logger(name: str | None = None, **fields: Any) -> BoundLogger:
    """Logger with ``fields`` bound; ``name`` is bound as ``logger``."""
    if name:
        fields["logger"] = name
    return BoundLogger(fields)


def _current_renderer() -> LogRenderer:
    if not _renderer:
        _renderer.append(ConsoleRenderer())
    return _renderer[0]


# ─────────────────────────────────────────────────────────────────────────────
# Decorators
# ─────────────────────────────────────────────────────────────────────────────


def timed(
    log: BoundLogger | None = None,
    *,
    level: str = "debug",
    event: str = "operation completed",
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Log how long each call of the decorated function or coroutine took.

    A call that raises is logged at error level as ``"<event> failed"`` and
    the exception is re-raised.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        target = log or get_logger(func.__module__)

        def report(started: float, err: Exception | None) -> None:
            elapsed = round((time.perf_counter() - started) * 1000, 2)
            if err is None:
                getattr(target, level)(event, function=func.__name__, duration_ms=elapsed)
            else:
                target.error(f"{event} failed", function=func.__name__, duration_ms=elapsed, error=str(err))

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)  # type: ignore[misc]
                except Exception as e:
                    report(started, e)
                    raise
                report(started, None)
                return result

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started, None)
            return result

        return wrapper

    return decorator
