"""
Snapshot builder that walks a catalog source and translates every object
into engine-neutral descriptors.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern

from ch_schema_dump.exceptions import CatalogUnavailable, MalformedIndexDefinition
from ch_schema_dump.metadata.base import CatalogSource
from ch_schema_dump.models import (
    CatalogObject,
    DataType,
    IndexDescriptor,
    ObjectKind,
    SchemaSnapshot,
    TableDescriptor,
)
from ch_schema_dump.translator.classifier import classify_catalog
from ch_schema_dump.translator.columns import build_column_descriptor
from ch_schema_dump.translator.ddl import normalize_engine, view_query, view_target
from ch_schema_dump.translator.indexes import build_index_descriptor

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Builds a SchemaSnapshot from a catalog source.

    Steps:
    1. Classify functions, tables and materialized views
    2. Drop ignored tables
    3. Build column and index descriptors for each table and view

    Only CatalogUnavailable propagates. Malformed indexes and unrecognized
    column types are logged and recorded as warnings on the descriptor.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        ignore_tables: Iterable[str] = (),
        simple: bool = False,
    ):
        self.catalog = catalog
        self.simple = simple
        self._ignore: List[Pattern[str]] = [re.compile(p) for p in ignore_tables]

    def is_ignored(self, name: str) -> bool:
        """Ignore patterns are regular expressions matched against the full name."""
        return any(p.fullmatch(name) for p in self._ignore)

    def build(self) -> SchemaSnapshot:
        """
        Build the snapshot.

        Returns:
            SchemaSnapshot in function, table, materialized view order

        Raises:
            CatalogUnavailable: if the catalog cannot be queried
        """
        classification = classify_catalog(self.catalog)

        tables = self._filter(classification.tables)
        views = self._filter(classification.materialized_views)

        descriptors: Dict[str, TableDescriptor] = {}
        for obj in tables + views:
            descriptors[obj.name] = self.describe(obj)

        snapshot = SchemaSnapshot(
            functions=tuple(classification.functions),
            tables=tuple(tables),
            materialized_views=tuple(views),
            descriptors=descriptors,
            database=getattr(self.catalog, "database", None),
        )

        logger.info(
            f"Built snapshot with {len(snapshot.functions)} functions, "
            f"{len(snapshot.tables)} tables and {len(snapshot.materialized_views)} materialized views"
        )
        return snapshot

    def _filter(self, objects: List[CatalogObject]) -> List[CatalogObject]:
        kept = []
        for obj in objects:
            if self.is_ignored(obj.name):
                logger.info(f"Ignoring {obj.kind.value} {obj.name}")
                continue
            kept.append(obj)
        return kept

    def describe(self, obj: CatalogObject) -> TableDescriptor:
        """Build the descriptor of one table or materialized view."""
        try:
            native_columns = self.catalog.get_columns(obj.name)
            index_sources = self.catalog.get_native_index_lines(obj.name)
            options = dict(self.catalog.get_table_options(obj.name))
        except CatalogUnavailable:
            raise
        except Exception as e:
            raise CatalogUnavailable(f"Could not read catalog for {obj.name!r}: {e}") from e

        descriptor = TableDescriptor(name=obj.name, kind=obj.kind)

        engine = options.pop("engine", None) or self.catalog.get_engine(obj.name)
        descriptor.engine = normalize_engine(engine)

        if obj.kind == ObjectKind.MATERIALIZED_VIEW:
            target = view_target(obj.raw_definition)
            if target:
                options["to"] = target
            query = view_query(obj.raw_definition)
            if query:
                options["as"] = query
        descriptor.options = options

        for native in native_columns:
            column = build_column_descriptor(
                native.type,
                name=native.name,
                simple=self.simple,
                default=native.default,
                comment=native.comment,
                in_primary_key=native.is_in_primary_key,
            )
            if column.base_type == DataType.UNKNOWN:
                descriptor.warnings.append(
                    f"Unknown type '{native.type}' for column '{native.name}'"
                )
            descriptor.columns.append(column)

        descriptor.indexes = self._build_indexes(obj.name, index_sources, descriptor.warnings)
        return descriptor

    def _build_indexes(
        self,
        table_name: str,
        sources: Iterable,
        warnings: List[str],
    ) -> List[IndexDescriptor]:
        indexes = []
        for source in sources:
            try:
                indexes.append(build_index_descriptor(source))
            except MalformedIndexDefinition as e:
                logger.warning(f"Skipping index on {table_name}: {e}")
                warnings.append(f"Skipped index: {e}")
        return indexes


def build_snapshot(
    catalog: CatalogSource,
    ignore_tables: Optional[Iterable[str]] = None,
    simple: bool = False,
) -> SchemaSnapshot:
    """Convenience wrapper around SnapshotBuilder."""
    return SnapshotBuilder(catalog, ignore_tables=ignore_tables or (), simple=simple).build()
