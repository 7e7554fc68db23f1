"""``conceptual describe``: list the operation surface of concept classes."""

from __future__ import annotations

import json
from typing import Any

import click

from conceptual.bootstrap import load_concept_types
from conceptual.service_layer import Concept, OperationSpec


def _query_fields(concept_type: type[Concept], spec: OperationSpec) -> list[str]:
    fields = set(spec.fields)
    if spec.relation is not None:
        fields |= set(concept_type.RELATIONS[spec.relation].attributes)
    return sorted(fields)


def describe_concept(concept_type: type[Concept]) -> dict[str, Any]:
    """Return a JSON-ready description of a concept class."""
    spec = concept_type.describe()
    return {
        "name": spec.name,
        "purpose": spec.purpose,
        "relations": {ns: list(attrs) for ns, attrs in spec.relations.items()},
        "actions": [
            {
                "name": action.name,
                "fields": sorted(action.fields),
                "idempotent": action.idempotent,
                "summary": action.summary,
            }
            for action in spec.actions
        ],
        "queries": [
            {
                "name": query.name,
                "fields": _query_fields(concept_type, query),
                "summary": query.summary,
            }
            for query in spec.queries
        ],
    }


def render_concept(description: dict[str, Any]) -> str:
    """Render a `describe_concept` result as indented text."""
    lines = [click.style(description["name"], bold=True)]
    if description["purpose"]:
        lines[0] += f": {description['purpose']}"
    lines.append("  relations:")
    lines.extend(
        f"    {namespace} ({', '.join(attrs)})"
        for namespace, attrs in description["relations"].items()
    )
    lines.append("  actions:")
    for action in description["actions"]:
        marker = " [idempotent]" if action["idempotent"] else ""
        lines.append(f"    {action['name']}({', '.join(action['fields'])}){marker}")
    lines.append("  queries:")
    lines.extend(
        f"    {query['name']}({', '.join(query['fields'])})"
        for query in description["queries"]
    )
    return "\n".join(lines)


@click.command()
@click.argument("module")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text.")
def describe(module: str, as_json: bool) -> None:
    """Describe the concepts defined in MODULE.

    MODULE is a dotted module name, e.g. ``conceptual.concepts.labeling``.
    """
    try:
        concept_types = load_concept_types(module)
    except ModuleNotFoundError as e:
        raise click.BadParameter(f"cannot import {module!r} ({e})", param_hint="MODULE") from e
    if not concept_types:
        raise click.ClickException(f"No concepts are defined in {module}.")

    descriptions = [describe_concept(concept_type) for concept_type in concept_types]
    if as_json:
        click.echo(json.dumps(descriptions, indent=2))
        return
    click.echo("\n\n".join(render_concept(d) for d in descriptions))
