"""
Catalog source backed by a YAML file.

Offline counterpart of ClickHouseCatalog, used to dump a schema captured
elsewhere and by the tests. Expected layout::

    database: analytics
    functions:
      - name: linear_equation
        definition: "CREATE FUNCTION linear_equation AS (x, k, b) -> k*x + b"
    tables:
      - name: events
        engine: MergeTree
        engine_full: "MergeTree ORDER BY id"
        definition: "CREATE TABLE analytics.events (...) ENGINE = MergeTree ORDER BY id"
        columns:
          - {name: id, type: UInt64, primary_key: true}
        indexes:
          - "INDEX idx_name name TYPE bloom_filter GRANULARITY 1"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ch_schema_dump.exceptions import CatalogUnavailable
from ch_schema_dump.metadata.base import CatalogSource, IndexSource, NativeColumn
from ch_schema_dump.translator.ddl import parse_engine_options

logger = logging.getLogger(__name__)


class YamlCatalog(CatalogSource):
    """Catalog source reading a YAML catalog document."""

    def __init__(self, data: Dict[str, Any]):
        self.database = data.get("database")
        self._functions: Dict[str, Dict[str, Any]] = {}
        self._tables: Dict[str, Dict[str, Any]] = {}

        for entry in data.get("functions", []) or []:
            self._functions[str(entry["name"])] = entry
        for entry in data.get("tables", []) or []:
            self._tables[str(entry["name"])] = entry

    @classmethod
    def from_file(cls, path: Path) -> YamlCatalog:
        """Load a catalog from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise CatalogUnavailable(f"Catalog file not found: {path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CatalogUnavailable(f"Could not parse catalog file {path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogUnavailable(f"Catalog file {path} must contain a mapping")

        catalog = cls(data)
        logger.info(
            f"Loaded {len(catalog._functions)} functions and {len(catalog._tables)} tables from {path}"
        )
        return catalog

    def _entry(self, name: str) -> Dict[str, Any]:
        if name in self._functions:
            return self._functions[name]
        if name in self._tables:
            return self._tables[name]
        raise CatalogUnavailable(f"Unknown catalog object {name!r}")

    def list_functions(self) -> List[str]:
        return list(self._functions.keys())

    def list_tables(self) -> List[str]:
        return list(self._tables.keys())

    def get_native_definition(self, name: str) -> str:
        return str(self._entry(name).get("definition") or "").strip()

    def get_engine(self, table_name: str) -> Optional[str]:
        return self._entry(table_name).get("engine")

    def get_table_options(self, table_name: str) -> Dict[str, str]:
        entry = self._entry(table_name)
        return parse_engine_options(entry.get("engine_full") or entry.get("engine"))

    def get_columns(self, table_name: str) -> List[NativeColumn]:
        columns = []
        for col in self._entry(table_name).get("columns", []) or []:
            columns.append(NativeColumn(
                name=str(col["name"]),
                type=str(col["type"]),
                default_kind=col.get("default_kind"),
                default_expression=col.get("default"),
                comment=col.get("comment"),
                is_in_primary_key=bool(col.get("primary_key", False)),
            ))
        return columns

    def get_native_index_lines(self, table_name: str) -> List[IndexSource]:
        return list(self._entry(table_name).get("indexes", []) or [])
