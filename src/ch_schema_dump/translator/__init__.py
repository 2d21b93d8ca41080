"""
Translation of ClickHouse catalog output into engine-neutral descriptors.

Three independent stages:
- classifier: functions / tables / materialized views
- columns: native type string -> ColumnDescriptor
- indexes: index line or row -> IndexDescriptor
"""

from ch_schema_dump.translator.classifier import Classification, classify, classify_catalog
from ch_schema_dump.translator.columns import build_column_descriptor, column_options
from ch_schema_dump.translator.indexes import build_index_descriptor, extract_index_lines

__all__ = [
    "Classification",
    "classify",
    "classify_catalog",
    "build_column_descriptor",
    "column_options",
    "build_index_descriptor",
    "extract_index_lines",
]
