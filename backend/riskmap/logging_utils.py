from __future__ import annotations

import logging
from pathlib import Path
from tempfile import gettempdir
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import settings

LOGGER_NAME = "riskmap"
LOG_FILE_NAME = "riskmap.log.jsonl"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _parse_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def _writable_dir(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / ".writetest"
        probe.touch(exist_ok=True)
        probe.unlink(missing_ok=True)
    except OSError:
        return False
    return True


def resolve_log_dir(out_dir: str | None = None) -> Path | None:
    """First writable of ``<out_dir>/logs`` and a temp-dir fallback, or None."""
    configured = Path(out_dir or settings.out_dir) / "logs"
    for candidate in (configured, Path(gettempdir()) / "riskmap" / "logs"):
        if _writable_dir(candidate):
            return candidate
    return None


def json_formatter() -> logging.Formatter:
    return jsonlogger.JsonFormatter(_FORMAT, rename_fields={"asctime": "ts", "levelname": "level"})


def configure_logging(*, level: str | None = None, out_dir: str | None = None) -> logging.Logger:
    """(Re)build the ``riskmap`` logger: JSON to stderr plus a JSONL file when a log dir is writable.

    Existing handlers are replaced, so calling this twice (reloaders, tests)
    never duplicates output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(_parse_level(level or settings.log_level))
    logger.propagate = False
    formatter = json_formatter()

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    log_dir = resolve_log_dir(out_dir)
    if log_dir is not None:
        try:
            file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
        except OSError:
            file_handler = None
        if file_handler is not None:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    return logger


LOGGER: logging.Logger | None = None


def get_logger() -> logging.Logger:
    global LOGGER
    if LOGGER is None:
        LOGGER = configure_logging()
    return LOGGER


def _emit(level: int, event: str, fields: dict[str, Any]) -> None:
    # event doubles as the message and a top-level key
    get_logger().log(level, event, extra={"event": event, **fields})


def log_event(event: str, **fields: Any) -> None:
    _emit(logging.INFO, event, fields)


def log_warning(event: str, **fields: Any) -> None:
    _emit(logging.WARNING, event, fields)
