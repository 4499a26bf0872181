"""Model document validation CLI.

Builds the model graph from a definitions directory and validates Digital
Twin model documents against it.

Usage::

    # Check the shipped definitions only
    python -m src.intellisense.check

    # Validate model files
    python -m src.intellisense.check thermostat.json sensor.json

    # Use another definitions directory
    python -m src.intellisense.check --definitions ./defs model.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from src.core.config import get_settings
from src.intellisense.builder import load_graph
from src.intellisense.json_tree import tree_from_value
from src.intellisense.query import GraphQuery
from src.intellisense.validator import Problem, resolve_document_version, validate_document

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Validate Digital Twin model documents")
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="JSON model documents to validate",
    )
    parser.add_argument(
        "--definitions",
        type=str,
        default=settings.definitions_path,
        help="Directory holding context.json, constraint.json and graph.json",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )
    return parser.parse_args(argv)


def _line_column(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and column of ``offset`` in ``text``."""
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _print_problems(path: Path, text: str, problems: list[Problem]) -> None:
    for problem in problems:
        line, column = _line_column(text, problem.offset)
        # multi-line messages list the accepted values
        head, *values = problem.message.split("\n")
        message = f"{head} {', '.join(values)}" if values else head
        print(f"  {path}:{line}:{column}: {message}")


def check_file(query: GraphQuery, path: Path) -> list[Problem] | None:
    """Validate one model file.

    Returns:
        The problems found, or None when the file cannot be read as JSON.
    """
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"  {path}: cannot read model document: {e}")
        return None

    root, text = tree_from_value(document)
    version = resolve_document_version(query, root)
    if not version:
        print(f"  {path}: skipped, no recognised @context")
        return []
    problems = validate_document(query, root)
    if problems:
        print(f"  {path} (version {version}): {len(problems)} problem(s)")
        _print_problems(path, text, problems)
    else:
        print(f"  {path} (version {version}): OK")
    return problems


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = get_settings()
    store = load_graph(
        args.definitions,
        context_file_name=settings.context_file_name,
        constraint_file_name=settings.constraint_file_name,
        graph_file_name=settings.graph_file_name,
    )
    if not store.initialized():
        print(f"FAILED: no model graph could be built from {args.definitions}")
        sys.exit(1)

    stats = store.stats()
    print(
        f"Model graph OK: {stats.class_count} classes, {stats.property_count} properties, "
        f"{stats.enum_count} enums, versions {stats.versions}"
    )

    query = GraphQuery(store)
    failed = False
    for path in args.files:
        problems = check_file(query, path)
        if problems is None or problems:
            failed = True

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
