"""
Output module for writing a schema snapshot as text.

Supports:
- Engine-neutral schema description
- Native ClickHouse DDL
"""

from ch_schema_dump.output.renderer import (
    Renderer,
    SchemaRenderer,
    SqlRenderer,
    get_renderer,
    render,
)

__all__ = [
    "Renderer",
    "SchemaRenderer",
    "SqlRenderer",
    "get_renderer",
    "render",
]
