"""
Route table loading.

Route tables are JSON documents in the front end (``routes.json``); YAML is
accepted as well since it is easier to write by hand.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Union

import yaml

from routegate.errors import RouteConfigError
from routegate.routes.definition import RouteDefinition, parse_route_table

logger = logging.getLogger("routegate.routes.loader")

RouteTableFormat = Literal["json", "yaml"]

_YAML_SUFFIXES = (".yaml", ".yml")


def detect_format(content: str, filename: Optional[str] = None) -> RouteTableFormat:
    """
    Picks the parser from the file extension when there is one, otherwise
    sniffs the first non-whitespace character.
    """
    if filename:
        lower = filename.lower()
        if lower.endswith(".json"):
            return "json"
        if lower.endswith(_YAML_SUFFIXES):
            return "yaml"

    trimmed = content.lstrip()
    if trimmed.startswith("{") or trimmed.startswith("["):
        return "json"
    return "yaml"


def parse_route_document(
    content: str, format: Optional[RouteTableFormat] = None
) -> dict[str, Any]:
    """Parses JSON or YAML text into a raw route table mapping."""
    fmt = format or detect_format(content)
    try:
        if fmt == "json":
            parsed = json.loads(content)
        else:
            parsed = yaml.safe_load(content or "")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RouteConfigError(f"could not parse route table as {fmt}: {e}") from e

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise RouteConfigError(f"parsed {fmt} route table must be an object")
    return parsed


def load_route_table(
    source: Union[str, Path, Mapping[str, Any]],
    format: Optional[RouteTableFormat] = None,
) -> dict[str, RouteDefinition]:
    """
    Loads and validates a route table.

    Args:
        source: A path to a JSON/YAML file, or an already parsed mapping
        format: Forces the parser instead of detecting it from the file name

    Raises:
        RouteConfigError: If the file cannot be read or the table is invalid
    """
    if isinstance(source, Mapping):
        return parse_route_table(source)

    path = Path(source)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RouteConfigError(f"could not read route table {path}: {e}") from e

    raw = parse_route_document(content, format or detect_format(content, path.name))
    table = parse_route_table(raw)
    logger.debug(
        "route_table_loaded", extra={"path": str(path), "route_count": len(table)}
    )
    return table
