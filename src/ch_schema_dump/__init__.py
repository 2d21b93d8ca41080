"""
ClickHouse Schema Dump - catalog translator for ClickHouse databases

Walks a ClickHouse catalog (user-defined functions, tables, materialized
views, columns and data-skipping indexes) and writes it out as an
engine-neutral schema description or as native DDL.

Features:
- Classification of functions, tables and materialized views
- Normalized column descriptors (nullable, array, map, low cardinality, signedness)
- Index descriptors from SHOW CREATE TABLE or system.data_skipping_indices
- Per-object failure containment when rendering
"""

__version__ = "0.1.0"

from ch_schema_dump.exceptions import (
    CatalogUnavailable,
    MalformedIndexDefinition,
    ObjectRenderFailure,
    SchemaDumpError,
    UnrecognizedColumnType,
)
from ch_schema_dump.models import (
    CatalogObject,
    ColumnDescriptor,
    DataType,
    DumpConfig,
    IndexDescriptor,
    ObjectKind,
    SchemaSnapshot,
    TableDescriptor,
)
from ch_schema_dump.translator import (
    build_column_descriptor,
    build_index_descriptor,
    classify,
)
from ch_schema_dump.metadata import (
    ClickHouseCatalog,
    SnapshotBuilder,
    YamlCatalog,
)
from ch_schema_dump.output import render

__all__ = [
    # Errors
    "SchemaDumpError",
    "CatalogUnavailable",
    "MalformedIndexDefinition",
    "UnrecognizedColumnType",
    "ObjectRenderFailure",
    # Models
    "CatalogObject",
    "ColumnDescriptor",
    "DataType",
    "DumpConfig",
    "IndexDescriptor",
    "ObjectKind",
    "SchemaSnapshot",
    "TableDescriptor",
    # Translation
    "classify",
    "build_column_descriptor",
    "build_index_descriptor",
    # Catalogs
    "ClickHouseCatalog",
    "YamlCatalog",
    "SnapshotBuilder",
    # Output
    "render",
]
