import os
import sys
import time
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, NamedTuple

# --
# # Logging
#
# Diagnostics go to stderr as colored, origin-tagged lines. The access log
# is plain text on stdout, two lines per request.

# SEE: https://no-color.org/
NO_COLOR: bool = "NO_COLOR" in os.environ
FORCE_COLOR: bool = "FORCE_COLOR" in os.environ
COLOR: bool = FORCE_COLOR or NO_COLOR is False

LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="servedir")

# The latency reported by the access log is not measured
ACCESS_LATENCY: str = "1 ms"


class Term:
	BOLD: ClassVar[str] = "\033[1m" if COLOR else ""
	RESET: ClassVar[str] = "\033[0m" if COLOR else ""

	@staticmethod
	def Color(color: int, bold: bool = False) -> str:
		return f"\033[{'1' if bold else '0'};38;5;{color}m" if COLOR else ""


class LogType(Enum):
	Message = 0
	Event = 20


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40  # A managed error
	Exception = 50  # An un-managed error


LOG_LEVEL_COLOR = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}


class LogEntry(NamedTuple):
	origin: str
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: Any = None
	context: dict[str, Any] | None = None
	icon: str | None = None


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		return " ".join(
			f"{Term.BOLD}{k}{Term.RESET}={formatData(v)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def send(entry: LogEntry) -> LogEntry:
	icon: str = f" {entry.icon}" if entry.icon else ""
	clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level])
	if entry.type == LogType.Event:
		sys.stderr.write(
			f"{clr}{Term.BOLD}[{entry.origin}] {entry.name}{Term.RESET} {formatData(entry.value)} {formatData(entry.context)}{Term.RESET}\n"
		)
	else:
		sys.stderr.write(
			f"{clr}{Term.BOLD}[{entry.origin}]{Term.RESET}{icon} {entry.message} {formatData(entry.context)}{Term.RESET}\n"
		)
	sys.stderr.flush()
	return entry


def entry(
	*,
	type: LogType = LogType.Message,
	level: LogLevel = LogLevel.Info,
	message: str | None = None,
	name: str | None = None,
	value: Any = None,
	context: dict[str, Any],
	icon: str | None = None,
) -> LogEntry:
	return LogEntry(
		origin=LogOrigin.get(),
		time=time.time(),
		type=type,
		level=level,
		message=message,
		name=name,
		value=value,
		context=context,
		icon=icon,
	)


def debug(message: str, *, icon: str | None = None, **context: Any) -> LogEntry:
	return send(
		entry(message=message, level=LogLevel.Debug, context=context, icon=icon)
	)


def info(message: str, *, icon: str | None = None, **context: Any) -> LogEntry:
	return send(entry(message=message, context=context, icon=icon))


def warning(message: str, *, icon: str | None = None, **context: Any) -> LogEntry:
	return send(
		entry(message=message, level=LogLevel.Warning, context=context, icon=icon)
	)


def error(
	message: str,
	code: int | str | None,
	*,
	icon: str | None = None,
	**context: Any,
) -> LogEntry:
	return send(
		entry(
			message=message,
			value=code,
			level=LogLevel.Error,
			context=context,
			icon=icon,
		)
	)


def event(event: str, value: Any = None, **context: Any) -> LogEntry:
	return send(entry(name=event, value=value, type=LogType.Event, context=context))


def exception(
	exception: BaseException,
	message: str | None = None,
) -> BaseException:
	try:
		stream = sys.stderr
		stream.write(
			f"!!! EXCP {f'{message}: [{exception.__class__.__name__}] {exception}' if message else f'[{exception.__class__.__name__}] {exception}'}\n"
		)
		tb = exception.__traceback__
		while tb:
			code = tb.tb_frame.f_code
			stream.write(
				f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}\n",
			)
			tb = tb.tb_next
		stream.flush()
	except Exception:  # nosec: B110
		# Must be callable from within exception handlers
		pass
	# Allows `raise exception(e)`
	return exception


def timestamp(at: datetime | None = None) -> str:
	"""Formats the date like a browser's `toLocaleString`, eg.
	`10/19/2026, 4:05:09 PM`."""
	t = at or datetime.now()
	return f"{t.month}/{t.day}/{t.year}, {t.hour % 12 or 12}:{t.minute:02d}:{t.second:02d} {'AM' if t.hour < 12 else 'PM'}"


def access(
	peer: str | None,
	method: str,
	path: str,
	status: int,
	*,
	at: datetime | None = None,
) -> tuple[str, str]:
	"""Writes the access log pair for a request to stdout and returns the
	two lines."""
	prefix = f"HTTP {timestamp(at)} {peer or '-'}"
	lines = (
		f"{prefix} {method} {path}",
		f"{prefix} Returned {status} in {ACCESS_LATENCY}",
	)
	sys.stdout.write(f"{lines[0]}\n{lines[1]}\n")
	sys.stdout.flush()
	return lines


# EOF
