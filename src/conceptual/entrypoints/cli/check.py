"""``conceptual check``: verify that concept units do not depend on each other.

Each top-level module or subpackage of the checked package is one concept
unit. Violations are printed one per line on stdout
(``path:line: kind unit -> target``) and make the command exit with status 1.
"""

from __future__ import annotations

from importlib.resources import files
from pathlib import Path

import click

from conceptual.isolation import (
    NotAConceptPackageError,
    check_isolation,
    discover_units,
)

from .helpers import success

SHIPPED_CONCEPTS = "conceptual.concepts"  # pragma: no mutate


def default_package_dir() -> Path:
    """Directory of the concepts shipped with conceptual."""
    return Path(str(files(SHIPPED_CONCEPTS)))


@click.command()
@click.argument(
    "package_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
def check(package_dir: Path | None) -> None:
    """Check that concept units do not depend on each other.

    PACKAGE_DIR is a package directory of concept modules; it defaults to the
    concepts shipped with conceptual.
    """
    package_dir = package_dir or default_package_dir()
    try:
        units = discover_units(package_dir)
        violations = check_isolation(package_dir)
    except NotAConceptPackageError as e:
        raise click.BadParameter(str(e), param_hint="PACKAGE_DIR") from e
    except SyntaxError as e:
        raise click.ClickException(
            f"Cannot parse {e.filename}:{e.lineno}: {e.msg}"
        ) from e

    for violation in violations:
        click.echo(str(violation))
    if violations:
        raise click.ClickException(
            f"{len(violations)} isolation violation(s) in {package_dir}."
        )
    success(f"{len(units)} concept unit(s) in {package_dir} are isolated.")
