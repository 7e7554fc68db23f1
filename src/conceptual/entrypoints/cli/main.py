"""Top-level ``conceptual`` command.

Subcommands:

- ``check``: verify that the units of a concept package stay isolated;
- ``describe``: list the concepts of a module and their operations;
- ``store``: inspect the store named by ``CONCEPTUAL_DB_URL`` and bind
  concepts to it.

The group callback only sets up logging; see `conceptual.logging`.

Examples
    $ conceptual check
    $ conceptual -v describe conceptual.concepts.labeling
    $ CONCEPTUAL_DB_URL=sqlite:///concepts.db conceptual store init conceptual.concepts.labeling
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir
from sqlalchemy.exc import ArgumentError

from conceptual import __version__, config
from conceptual.logging import (
    FlightRecorderSettings,
    configure_logging,
    log_startup,
    verbosity_level,
)

from .check import check
from .describe import describe
from .helpers import sanitize_url
from .helpers.log_level_parser import parse_log_level
from .store import store

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = (
    Path(user_log_dir("conceptual", appauthor=False, ensure_exists=True)) / "latest.log"
)

HELP = """Run and inspect self-contained concepts.

    A concept owns its state, changes it only through its own actions, exposes
    it only through its own queries, and knows other concepts' entities by
    identifier alone.
    """


def _store_url_for_log() -> str | None:
    try:
        return sanitize_url(config.get_db_url())
    except config.DatabaseUrlNotSetError:
        return None
    except ArgumentError:
        return "<invalid>"


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "--verbose", "-v", "verbose_count", count=True, help="More console output (repeatable)."
)
@click.option(
    "--quiet", "-q", "quiet_count", count=True, help="Less console output (repeatable)."
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Show every record with its time, logger and source line.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOG_PATH,
    envvar="CONCEPTUAL_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to.",
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="CONCEPTUAL_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Records kept by the flight recorder.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    default=True,
    show_envvar=True,
    help=(
        "Keep recent DEBUG records in memory and write them to --log-path "
        "when a warning or error is logged."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    default=False,
    show_default=True,
    show_envvar=True,
    help="Also write the flight recorder on a clean exit.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    default=("sqlalchemy=WARNING",),
    show_default=True,
    show_envvar=True,
    help=(
        "NAME=LEVEL floor for one logger, applied to the console and the flight "
        "recorder alike (e.g. -L conceptual.isolation=DEBUG)."
    ),
)
@clickx.pass_context
def conceptual(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
) -> None:
    """Run and inspect self-contained concepts."""
    level = verbosity_level(verbose_count, quiet_count)
    recorder = (
        FlightRecorderSettings(
            path=log_path,
            capacity=flight_recorder_capacity,
            flush_on_close=force_flush_flight_recorder,
        )
        if flight_recorder
        else None
    )
    handlers = configure_logging(
        level=level,
        debug_mode=debug,
        color=ctx.color is not False,
        recorder=recorder,
        logger_levels=logger_levels,
    )
    log_startup(
        logger,
        level=level,
        handlers=handlers,
        recorder=recorder,
        logger_levels=logger_levels,
        store_url=_store_url_for_log(),
    )
    ctx.call_on_close(logging.shutdown)


conceptual.add_command(check)
conceptual.add_command(describe)
conceptual.add_command(store)
