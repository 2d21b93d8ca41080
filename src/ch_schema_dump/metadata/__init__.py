"""
Catalog access for ClickHouse databases.

Provides catalog sources (live ClickHouse, YAML file) and the builder that
turns a catalog into a SchemaSnapshot.
"""

from ch_schema_dump.metadata.base import CatalogSource, NativeColumn
from ch_schema_dump.metadata.clickhouse import ClickHouseCatalog
from ch_schema_dump.metadata.resolver import SnapshotBuilder, build_snapshot
from ch_schema_dump.metadata.yaml_catalog import YamlCatalog

__all__ = [
    "CatalogSource",
    "NativeColumn",
    "ClickHouseCatalog",
    "YamlCatalog",
    "SnapshotBuilder",
    "build_snapshot",
]
