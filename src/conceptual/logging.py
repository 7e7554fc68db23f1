"""Logging setup for the conceptual CLI.

Library code only logs through ``logging.getLogger(__name__)``. The CLI calls
`configure_logging` once per run, which attaches to the root logger:

- a Rich console handler on stderr; records from other libraries are tagged
  with a ``[library]`` prefix so they stand out from concept output;
- optionally, a flight recorder: a `MemoryHandler` holding the most recent
  records at DEBUG and writing them to a file once something goes wrong.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from dataclasses import dataclass
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

from conceptual import __version__

if TYPE_CHECKING:
    from collections.abc import Mapping
    from logging import Handler, Logger

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "conceptual"

CONSOLE_FORMAT = "%(prefix)s %(message)s"  # pragma: no mutate
DEBUG_CONSOLE_FORMAT = "%(asctime)s %(name)s: %(message)s"  # pragma: no mutate
FLIGHT_RECORDER_FORMAT = (  # pragma: no mutate
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

DEFAULT_LEVEL = logging.WARNING
LEVEL_STEP = 10

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


@dataclass(frozen=True, slots=True)
class FlightRecorderSettings:
    """Where and how much the flight recorder keeps.

    Attributes:
        path: File the buffer is written to (truncated at startup).
        capacity: Number of records kept in memory.
        flush_on_close: Also write the buffer when logging shuts down cleanly.
    """

    path: Path
    capacity: int = 2000
    flush_on_close: bool = False


class ThirdPartyPrefixFilter(logging.Filter):
    """Set `record.prefix` to ``"[library]"`` for records from other packages.

    Project records get an empty prefix. No record is ever dropped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        top = record.name.split(".")[0]
        record.prefix = "" if top == PROJECT_PREFIX else f"[{top}]"
        return True


def verbosity_level(verbose: int = 0, quiet: int = 0) -> int:
    """Console level for ``-v``/``-q`` counts: WARNING shifted one step per flag."""
    level = DEFAULT_LEVEL - LEVEL_STEP * verbose + LEVEL_STEP * quiet
    return max(logging.DEBUG, min(logging.CRITICAL, level))


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr console handler.

    In debug mode every record is shown with its time, logger name and source
    location; otherwise records show only the third-party prefix and message.
    """
    color_system: ColorSystem | None = "auto" if color else None
    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    if debug_mode:
        handler.setFormatter(logging.Formatter(fmt=DEBUG_CONSOLE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT))
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def config_flight_recorder(
    settings: FlightRecorderSettings, flush_level: int = logging.WARNING
) -> MemoryHandler:
    """Build the flight recorder described by `settings`.

    The buffer is written out when a record at `flush_level` or above arrives.
    """
    file_handler = logging.FileHandler(settings.path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FLIGHT_RECORDER_FORMAT))
    return MemoryHandler(
        capacity=settings.capacity,
        flushLevel=flush_level,
        target=file_handler,
        flushOnClose=settings.flush_on_close,
    )


def configure_logging(
    *,
    level: int,
    debug_mode: bool = False,
    color: bool = True,
    recorder: FlightRecorderSettings | None = None,
    logger_levels: Mapping[str, int] | None = None,
) -> list[Handler]:
    """Replace the root logger's handlers and apply per-logger levels.

    The root logger passes everything; each handler applies its own level.
    Per-logger levels bound what a logger emits to every handler.

    Returns:
        The handlers now attached to the root logger.
    """
    handlers: list[Handler] = [
        config_console_handler(level=level, debug_mode=debug_mode, color=color)
    ]
    if recorder is not None:
        handlers.append(config_flight_recorder(recorder))
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(logger_level)
    return handlers


def log_startup(
    logger: Logger,
    *,
    level: int,
    handlers: list[Handler],
    recorder: FlightRecorderSettings | None,
    logger_levels: Mapping[str, int],
    store_url: str | None,
) -> None:
    """Log a one-line INFO summary of this run, then DEBUG diagnostics.

    `store_url` must already have its password hidden; None means
    ``CONCEPTUAL_DB_URL`` is unset.
    """
    logger.info(
        "conceptual %s: console=%s, flight-recorder=%s, store=%s",
        __version__,
        logging.getLevelName(level),
        "ON" if recorder else "OFF",
        store_url or "<unset>",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("PID: %s", os.getpid())
    logger.debug("CWD: %s", Path.cwd())
    logger.debug("SQLAlchemy: %s", sqlalchemy.__version__)
    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            recorder.path,
            recorder.capacity,
            recorder.flush_on_close,
        )
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()}
        or "<none>",
    )
