"""
Index descriptor builder.

Accepts either a single index line as it appears in ``SHOW CREATE TABLE``
output::

    INDEX idx1 col1 TYPE minmax GRANULARITY 4

or a structured row from ``system.data_skipping_indices``. The GRANULARITY
clause is required in the line form; a structured row may omit it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Union

from ch_schema_dump.exceptions import MalformedIndexDefinition
from ch_schema_dump.models import IndexDescriptor

logger = logging.getLogger(__name__)


INDEX_LINE_PATTERN = re.compile(
    r"^INDEX (?P<name>\S+) (?P<expr>.+?) TYPE (?P<type>(?:(?! GRANULARITY ).)+?) GRANULARITY (?P<granularity>\S+)$"
)

# Used only to pull candidate lines out of a CREATE statement
INDEX_SCAN_PATTERN = re.compile(r"INDEX \S+ \S.*? TYPE .*? GRANULARITY \d+")


def parse_granularity(value: Any, definition: Any) -> int:
    """Granularity must be a non-negative integer."""
    if isinstance(value, bool):
        raise MalformedIndexDefinition(definition, f"granularity {value!r} is not an integer")
    if isinstance(value, int):
        granularity = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise MalformedIndexDefinition(definition, f"granularity {value!r} is not a non-negative integer")
        granularity = int(text)
    if granularity < 0:
        raise MalformedIndexDefinition(definition, f"granularity {value!r} is negative")
    return granularity


def _from_line(line: str) -> IndexDescriptor:
    text = line.strip().rstrip(",").strip()
    match = INDEX_LINE_PATTERN.match(text)
    if not match:
        raise MalformedIndexDefinition(line)

    return IndexDescriptor(
        name=match.group("name"),
        expression=match.group("expr").strip(),
        type=match.group("type").strip(),
        granularity=parse_granularity(match.group("granularity"), line),
    )


def _from_mapping(row: Mapping[str, Any]) -> IndexDescriptor:
    name = row.get("name")
    expression = row.get("expression", row.get("expr"))
    index_type = row.get("type_full") or row.get("type")
    if not name or not expression or not index_type:
        raise MalformedIndexDefinition(dict(row), "name, expression and type are required")

    granularity = row.get("granularity")
    return IndexDescriptor(
        name=str(name),
        expression=str(expression).strip(),
        type=str(index_type).strip(),
        granularity=parse_granularity(granularity, dict(row)) if granularity is not None else None,
    )


def build_index_descriptor(source: Union[str, Mapping[str, Any]]) -> IndexDescriptor:
    """
    Build an IndexDescriptor.

    Args:
        source: Index line or structured index metadata

    Returns:
        IndexDescriptor

    Raises:
        MalformedIndexDefinition: if the definition does not have the expected shape
    """
    if isinstance(source, str):
        return _from_line(source)
    if isinstance(source, Mapping):
        return _from_mapping(source)
    raise MalformedIndexDefinition(source, f"unsupported definition type {type(source).__name__}")


def extract_index_lines(ddl: str) -> List[str]:
    """Scan a CREATE TABLE statement for index lines."""
    lines = [m.group(0).strip() for m in INDEX_SCAN_PATTERN.finditer(ddl or "")]
    logger.debug(f"Found {len(lines)} index lines in DDL")
    return lines
