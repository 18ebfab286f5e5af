"""Dependency graph of derived fields.

Edges run from a derived field to each of its declared parents. Used to
detect cyclic derivations before a schema is saved and to lint schemas.
"""

import logging
from typing import Dict, List, Set

from form_builder.schemas.form_schema import FormSchema

logger = logging.getLogger(__name__)


def build_dependency_graph(schema: FormSchema) -> Dict[str, List[str]]:
    """
    Map each derived field id to its parent field ids.

    Args:
        schema: Form schema

    Returns:
        Dict of derived field id -> parent ids (declaration order, deduplicated)
    """
    graph: Dict[str, List[str]] = {}
    for field in schema.derived_fields():
        if field.derived_config is None:
            continue
        parents: List[str] = []
        for parent_id in field.derived_config.parent_field_ids:
            if parent_id not in parents:
                parents.append(parent_id)
        graph[field.id] = parents
    return graph


def find_derived_cycles(schema: FormSchema) -> List[List[str]]:
    """
    Find cyclic dependencies between derived fields.

    Each cycle is reported once as a closed path starting and ending at
    the same field id, e.g. ``["a", "b", "a"]``. A field listing itself as
    a parent is reported as ``["a", "a"]``.

    Args:
        schema: Form schema

    Returns:
        List of cycles (empty if the derivations form a DAG)
    """
    graph = build_dependency_graph(schema)
    cycles: List[List[str]] = []
    seen_cycles: Set[frozenset] = set()
    done: Set[str] = set()

    def visit(node: str, path: List[str], on_path: Set[str]) -> None:
        for parent in graph.get(node, []):
            if parent in on_path:
                cycle = path[path.index(parent):] + [parent]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle)
                continue
            if parent in done or parent not in graph:
                continue
            path.append(parent)
            on_path.add(parent)
            visit(parent, path, on_path)
            on_path.discard(parent)
            path.pop()
        done.add(node)

    for field_id in graph:
        if field_id not in done:
            visit(field_id, [field_id], {field_id})

    if cycles:
        logger.debug(f"Form '{schema.id}' has {len(cycles)} derived-field cycle(s)")
    return cycles


def find_unknown_parents(schema: FormSchema) -> Dict[str, List[str]]:
    """Map derived field ids to parent ids that are not fields of the schema."""
    known = set(schema.field_ids())
    unknown: Dict[str, List[str]] = {}
    for field_id, parents in build_dependency_graph(schema).items():
        missing = [parent for parent in parents if parent not in known]
        if missing:
            unknown[field_id] = missing
    return unknown


def check_schema(schema: FormSchema) -> List[str]:
    """
    Lint a schema's derived-field configuration.

    Reports cycles, parents that do not exist, AGE_FROM_DOB formulas
    without exactly one parent, empty formulas and declared parents the
    formula never references.

    Returns:
        Human-readable problem descriptions (empty if none)
    """
    problems: List[str] = []

    for cycle in find_derived_cycles(schema):
        problems.append(f"Dependency cycle: {' -> '.join(cycle)}")

    for field_id, missing in find_unknown_parents(schema).items():
        problems.append(f"Field '{field_id}' references unknown parent(s): {', '.join(missing)}")

    for field in schema.derived_fields():
        config = field.derived_config
        if config is None:
            continue
        if config.is_age_from_dob:
            if len(config.parent_field_ids) != 1:
                problems.append(
                    f"Field '{field.id}' uses AGE_FROM_DOB with "
                    f"{len(config.parent_field_ids)} parents (expected 1)"
                )
            continue
        if not config.formula.strip():
            problems.append(f"Field '{field.id}' has an empty formula")
            continue
        for parent_id in config.parent_field_ids:
            if "{" + parent_id + "}" not in config.formula:
                problems.append(f"Field '{field.id}' never uses parent '{parent_id}' in its formula")

    return problems
