"""Isolation checker.

A static pass over a package of concept modules. Every top-level module or
subpackage of the package is one *unit*; the package's own ``__init__.py`` is
not a unit, so it may re-export every concept. For each unit the checker
reports:

- ``import``: an import (absolute or relative, ``TYPE_CHECKING`` blocks
  included) or a dotted module-path string that resolves to another unit;
- ``reference``: a name or attribute naming a class declared at module level
  by another unit and not declared locally, or such a class imported by name
  from the package (re-exports and aliases included);
- ``namespace``: a string literal starting with another concept's
  ``"<ConceptName>."`` collection prefix.

Sources are parsed, never imported or executed.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import IsolationError, NotAConceptPackageError

logger = logging.getLogger(__name__)

CONCEPT_BASE = "Concept"
NAME_ATTR = "name"
PACKAGE_INIT = "__init__.py"


class ViolationKind(str, Enum):
    """The ways one unit can depend on another."""

    IMPORT = "import"
    REFERENCE = "reference"
    NAMESPACE = "namespace"


@dataclass(frozen=True, order=True, slots=True)
class Violation:
    """One dependency of a unit on another unit.

    Attributes:
        unit: The offending unit.
        path: Source file containing the dependency.
        lineno: Line of the dependency in `path`.
        kind: How the dependency is expressed.
        target: What it depends on (a module, ``unit.ClassName`` or a string).
    """

    unit: str
    path: Path
    lineno: int
    kind: ViolationKind
    target: str

    def __str__(self) -> str:
        return (
            f"{self.path}:{self.lineno}: {self.kind.value} "
            f"{self.unit} -> {self.target}"
        )


@dataclass
class _Unit:
    name: str
    files: list[Path]
    trees: dict[Path, ast.Module] = field(default_factory=dict)
    classes: set[str] = field(default_factory=set)
    concepts: set[str] = field(default_factory=set)


def discover_units(package_dir: Path | str) -> dict[str, list[Path]]:
    """Map each unit of a concept package to its source files.

    Raises:
        NotAConceptPackageError: If `package_dir` has no ``__init__.py``.
    """
    root = Path(package_dir)
    if not (root / PACKAGE_INIT).is_file():
        raise NotAConceptPackageError(str(package_dir))
    units: dict[str, list[Path]] = {}
    for entry in sorted(root.iterdir()):
        if entry.is_file() and entry.suffix == ".py" and entry.name != PACKAGE_INIT:
            units[entry.stem] = [entry]
        elif entry.is_dir() and (entry / PACKAGE_INIT).is_file():
            units[entry.name] = sorted(entry.rglob("*.py"))
    return units


def check_isolation(package_dir: Path | str) -> list[Violation]:
    """Return every isolation violation in a concept package, sorted."""
    root = Path(package_dir).resolve()
    package = _dotted_name(root)
    units = {
        name: _load_unit(name, files)
        for name, files in discover_units(root).items()
    }
    logger.debug("Checking %d unit(s) of package %s", len(units), package)

    found: set[Violation] = set()
    for unit in units.values():
        others = [other for other in units.values() if other.name != unit.name]
        foreign_classes = {
            cls: other.name
            for other in others
            for cls in other.classes
            if cls not in unit.classes
        }
        prefixes = {
            f"{concept}."
            for other in others
            for concept in other.concepts
            if concept not in unit.concepts
        }
        for path, tree in unit.trees.items():
            context = _FileContext(root, package, path, set(units) - {unit.name})
            found.update(
                Violation(unit.name, path, lineno, kind, target)
                for lineno, kind, target in _scan(
                    tree, context, foreign_classes, prefixes
                )
            )

    violations = sorted(found)
    logger.debug("Found %d isolation violation(s)", len(violations))
    return violations


def assert_isolated(package_dir: Path | str) -> None:
    """Check a concept package and fail on any violation.

    Raises:
        IsolationError: If any unit depends on another.
    """
    if violations := check_isolation(package_dir):
        raise IsolationError(violations)
    logger.info("Concept package %s is isolated", package_dir)


# ============================================================================
#                                  Internals
# ============================================================================


@dataclass(frozen=True)
class _FileContext:
    root: Path
    package: str
    path: Path
    foreign_units: set[str]

    @property
    def file_package(self) -> list[str]:
        """Dotted parts of the package the file's relative imports start from."""
        parts = list(self.path.relative_to(self.root).with_suffix("").parts)
        parts.pop()  # the module itself, or "__init__"
        return self.package.split(".") + parts

    def within(self, dotted: str) -> bool:
        """Whether a dotted module path is the package or lies inside it."""
        return dotted == self.package or dotted.startswith(self.package + ".")

    def foreign_unit(self, dotted: str | None) -> str | None:
        """Return the foreign unit a dotted module path lies in, if any."""
        prefix = self.package + "."
        if not dotted or not dotted.startswith(prefix):
            return None
        head = dotted[len(prefix) :].split(".", 1)[0]
        return head if head in self.foreign_units else None


def _dotted_name(root: Path) -> str:
    parts = [root.name]
    parent = root.parent
    while (parent / PACKAGE_INIT).is_file():
        parts.insert(0, parent.name)
        parent = parent.parent
    return ".".join(parts)


def _load_unit(name: str, files: list[Path]) -> _Unit:
    unit = _Unit(name, [f.resolve() for f in files])
    for path in unit.files:
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        unit.trees[path] = tree
        for node in tree.body:
            if isinstance(node, ast.ClassDef):
                unit.classes.add(node.name)
                if _is_concept(node):
                    unit.concepts.add(_concept_name(node))
    return unit


def _is_concept(node: ast.ClassDef) -> bool:
    for base in node.bases:
        if isinstance(base, ast.Name) and base.id == CONCEPT_BASE:
            return True
        if isinstance(base, ast.Attribute) and base.attr == CONCEPT_BASE:
            return True
    return False


def _concept_name(node: ast.ClassDef) -> str:
    for stmt in node.body:
        if isinstance(stmt, ast.Assign):
            targets = stmt.targets
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
            targets = [stmt.target]
        else:
            continue
        if (
            any(isinstance(t, ast.Name) and t.id == NAME_ATTR for t in targets)
            and isinstance(stmt.value, ast.Constant)
            and isinstance(stmt.value.value, str)
        ):
            return stmt.value.value
    return node.name


def _resolve_from(node: ast.ImportFrom, file_package: list[str]) -> str | None:
    if node.level == 0:
        return node.module
    drop = node.level - 1
    if drop >= len(file_package):
        return None
    base = file_package[: len(file_package) - drop]
    return ".".join(base + ([node.module] if node.module else []))


def _scan(
    tree: ast.Module,
    context: _FileContext,
    foreign_classes: dict[str, str],
    prefixes: set[str],
) -> Iterator[tuple[int, ViolationKind, str]]:
    # pylint: disable=too-many-branches
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if context.foreign_unit(alias.name):
                    yield node.lineno, ViolationKind.IMPORT, alias.name
        elif isinstance(node, ast.ImportFrom):
            module = _resolve_from(node, context.file_package)
            if context.foreign_unit(module):
                yield node.lineno, ViolationKind.IMPORT, module  # type: ignore[misc]
            elif module:
                for alias in node.names:
                    dotted = f"{module}.{alias.name}"
                    if context.foreign_unit(dotted):
                        yield node.lineno, ViolationKind.IMPORT, dotted
                    elif context.within(module) and alias.name in foreign_classes:
                        # re-exported through the package, possibly aliased
                        yield (
                            node.lineno,
                            ViolationKind.REFERENCE,
                            f"{foreign_classes[alias.name]}.{alias.name}",
                        )
        elif isinstance(node, ast.Name) and node.id in foreign_classes:
            yield (
                node.lineno,
                ViolationKind.REFERENCE,
                f"{foreign_classes[node.id]}.{node.id}",
            )
        elif isinstance(node, ast.Attribute) and node.attr in foreign_classes:
            yield (
                node.lineno,
                ViolationKind.REFERENCE,
                f"{foreign_classes[node.attr]}.{node.attr}",
            )
        elif isinstance(node, ast.Constant) and isinstance(node.value, str):
            if context.foreign_unit(node.value):
                yield node.lineno, ViolationKind.IMPORT, node.value
            for prefix in prefixes:
                if node.value.startswith(prefix):
                    yield node.lineno, ViolationKind.NAMESPACE, node.value
