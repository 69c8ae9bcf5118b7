"""Logging layer for the switch core.

Each ``SwitchLogger`` writes human-readable lines, JSON lines, or both. Every
record carries the correlation id of the command in flight and any
structured context passed through ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing_extensions import override

from esmart_switch.correlation import get_correlation_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "SwitchLogger",
    "get_logger",
]

_CONTEXT_ATTR = "switch_context"
_NO_CORRELATION = "[--------]"


def _record_context(record: logging.LogRecord) -> dict[str, object]:
    context = getattr(record, _CONTEXT_ATTR, None)
    if isinstance(context, Mapping):
        return {str(key): value for key, value in context.items()}
    return {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        if context := _record_context(record):
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Text line with an 8-char correlation tag and trailing ``key=value`` context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s:%(lineno)d %(corr_tag)s > %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        corr_id = get_correlation_id()
        record.corr_tag = f"[{corr_id[:8]}]" if corr_id else _NO_CORRELATION
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in context.items())


def _stream_or_file(target: str | Path) -> logging.Handler:
    """``stdout``/``stderr`` become stream handlers; anything else is an appended file."""
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


class SwitchLogger:
    """Wraps a stdlib logger and adds ``extra=`` context to every call."""

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        """Attach handlers on first use of ``name``.

        Args:
            name: stdlib logger name, usually ``__name__``
            log_format: ``human``, ``json`` or ``both``
            json_file: file for JSON lines; JSON output is off without it
            human_output: ``stdout``, ``stderr`` or a file path

        """
        from esmart_switch.const import ESMART_DEBUG

        self.name: str = name
        self.log_format: str = log_format
        self.logger: logging.Logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if ESMART_DEBUG else logging.INFO)
        if not self.logger.handlers:
            self._attach(json_file, human_output)

    def _attach(self, json_file: str | Path | None, human_output: str | None) -> None:
        wanted: list[tuple[str | Path, logging.Formatter]] = []
        if self.log_format in ("json", "both") and json_file:
            wanted.append((json_file, JSONFormatter()))
        if self.log_format in ("human", "both"):
            wanted.append((human_output or "stdout", HumanReadableFormatter()))

        for target, formatter in wanted:
            try:
                handler = _stream_or_file(target)
            except OSError as exc:
                # unusable target: stdout instead
                print(f"esmart_switch: cannot open log output {target}: {exc}", file=sys.stderr)
                handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(formatter)
            handler.setLevel(self.logger.level)
            self.logger.addHandler(handler)

    def log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        self.logger.log(
            level,
            msg,
            *args,
            extra={_CONTEXT_ATTR: dict(extra)} if extra else None,
            exc_info=exc_info,
            stacklevel=3,
        )

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """ERROR with the active traceback attached."""
        self.log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> SwitchLogger:
    """SwitchLogger for ``name``; unset arguments come from the ESMART_LOG_* settings."""
    from esmart_switch.const import (
        ESMART_LOG_FORMAT,
        ESMART_LOG_HUMAN_OUTPUT,
        ESMART_LOG_JSON_FILE,
    )

    return SwitchLogger(
        name,
        log_format=log_format or ESMART_LOG_FORMAT,
        json_file=json_file or ESMART_LOG_JSON_FILE,
        human_output=human_output or ESMART_LOG_HUMAN_OUTPUT,
    )
