"""
Renderers turning a SchemaSnapshot into text.

Every renderer runs the same pipeline: a header, then one block per object
in snapshot order (functions, tables, materialized views). Each block is
rendered into a buffer first, so a failing object never leaves half a block
in the sink; instead a commented diagnostic is written and rendering moves
on to the next object.

Supports:
- schema: engine-neutral schema description (default)
- sql: native ClickHouse DDL, each object dropped and recreated
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Dict, List, TextIO, Type

from ch_schema_dump.exceptions import ObjectRenderFailure
from ch_schema_dump.models import (
    CatalogObject,
    ObjectKind,
    SchemaSnapshot,
    TableDescriptor,
)
from ch_schema_dump.translator.columns import column_options
from ch_schema_dump.translator.ddl import function_body, quote_identifier

logger = logging.getLogger(__name__)


def format_value(value: Any) -> str:
    """Render a scalar or list as a literal."""
    return json.dumps(value, ensure_ascii=False)


def format_options(options: Dict[str, Any]) -> str:
    return ", ".join(f"{key}: {format_value(value)}" for key, value in options.items())


class Renderer:
    """Base renderer; subclasses implement the per-kind blocks."""

    comment_prefix = "#"

    def __init__(self, simple: bool = False):
        self.simple = simple
        self.failures: List[ObjectRenderFailure] = []

    def render(self, snapshot: SchemaSnapshot, sink: TextIO) -> List[ObjectRenderFailure]:
        """
        Write the snapshot to a sink.

        Args:
            snapshot: Snapshot to render
            sink: Writable text stream

        Returns:
            Failures that were reported inline
        """
        self.failures = []
        self.write_header(snapshot, sink)

        for obj in snapshot.ordered():
            buffer = io.StringIO()
            try:
                self.render_object(obj, snapshot, buffer)
            except Exception as e:
                failure = ObjectRenderFailure(obj.name, e)
                self.failures.append(failure)
                logger.warning(f"Could not dump {obj.kind.value} {obj.name}: {e}")
                self.write_diagnostic(obj, e, sink)
                continue
            sink.write(buffer.getvalue())

        self.write_footer(snapshot, sink)
        return self.failures

    def render_object(self, obj: CatalogObject, snapshot: SchemaSnapshot, out: TextIO) -> None:
        if obj.kind == ObjectKind.FUNCTION:
            self.render_function(obj, out)
            return

        descriptor = snapshot.get_descriptor(obj.name)
        if descriptor is None:
            raise KeyError(f"no descriptor for {obj.name!r}")
        if obj.kind == ObjectKind.MATERIALIZED_VIEW:
            self.render_view(obj, descriptor, out)
        else:
            self.render_table(obj, descriptor, out)

    def write_diagnostic(self, obj: CatalogObject, error: BaseException, sink: TextIO) -> None:
        p = self.comment_prefix
        sink.write(f"{p} Could not dump {obj.kind.value} {obj.name!r} because of following {type(error).__name__}\n")
        for line in str(error).splitlines() or [""]:
            sink.write(f"{p}   {line}\n")
        sink.write("\n")

    def write_warnings(self, descriptor: TableDescriptor, out: TextIO, indent: str = "") -> None:
        for warning in descriptor.warnings:
            out.write(f"{indent}{self.comment_prefix} WARNING: {warning}\n")

    def write_header(self, snapshot: SchemaSnapshot, sink: TextIO) -> None:
        pass

    def write_footer(self, snapshot: SchemaSnapshot, sink: TextIO) -> None:
        pass

    def render_function(self, obj: CatalogObject, out: TextIO) -> None:
        raise NotImplementedError

    def render_table(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        raise NotImplementedError

    def render_view(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        raise NotImplementedError


class SchemaRenderer(Renderer):
    """
    Engine-neutral schema description.

    Example output::

        create_function "linear_equation", "(x, k, b) -> ((k * x) + b)"

        create_table "events", engine: "MergeTree", order_by: "id" do
          column "id", "integer", unsigned: true, limit: 8, primary_key: true
          column "tags", "string", array: true, low_cardinality: true

          index "tags", name: "idx_tags", type: "bloom_filter", granularity: 1
        end
    """

    def write_header(self, snapshot: SchemaSnapshot, sink: TextIO) -> None:
        if snapshot.database:
            sink.write(f"# Schema of ClickHouse database {snapshot.database!r}\n\n")

    def render_function(self, obj: CatalogObject, out: TextIO) -> None:
        out.write(f"# FUNCTION: {obj.name}\n")
        out.write(f"create_function {format_value(obj.name)}, {format_value(function_body(obj.raw_definition))}\n\n")

    def _table_options(self, descriptor: TableDescriptor) -> Dict[str, Any]:
        if self.simple:
            return {}
        options: Dict[str, Any] = {}
        if descriptor.engine:
            options["engine"] = descriptor.engine
        options.update(descriptor.options)
        return options

    def _write_body(self, descriptor: TableDescriptor, out: TextIO, with_columns: bool) -> None:
        self.write_warnings(descriptor, out, indent="  ")
        if with_columns:
            for column in descriptor.columns:
                line = f"  column {format_value(column.name)}, {format_value(column.base_type.value)}"
                options = column_options(column)
                if options:
                    line += f", {format_options(options)}"
                out.write(line + "\n")

        if descriptor.indexes:
            if with_columns and descriptor.columns:
                out.write("\n")
            for index in descriptor.indexes:
                (_, expression), *rest = index.parts()
                out.write(f"  index {format_value(expression)}, {format_options(dict(rest))}\n")

    def render_table(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        header = f"create_table {format_value(obj.name)}"
        options = self._table_options(descriptor)
        if options:
            header += f", {format_options(options)}"
        out.write(header + " do\n")
        self._write_body(descriptor, out, with_columns=True)
        out.write("end\n\n")

    def render_view(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        header = f"create_view {format_value(obj.name)}"
        if not self.simple:
            header += ", materialized: true"
        options = self._table_options(descriptor)
        if options:
            header += f", {format_options(options)}"
        out.write(header + " do\n")
        # View columns follow from the query; only simple dumps list them
        self._write_body(descriptor, out, with_columns=self.simple)
        out.write("end\n\n")


class SqlRenderer(Renderer):
    """Native DDL: every object is dropped and recreated from its definition."""

    comment_prefix = "--"

    def write_header(self, snapshot: SchemaSnapshot, sink: TextIO) -> None:
        if snapshot.database:
            sink.write(f"-- Schema of ClickHouse database {snapshot.database!r}\n\n")

    @staticmethod
    def _statement(sql: str) -> str:
        sql = sql.strip()
        return sql if sql.endswith(";") else sql + ";"

    def render_function(self, obj: CatalogObject, out: TextIO) -> None:
        out.write(f"-- FUNCTION: {obj.name}\n")
        out.write(f"DROP FUNCTION IF EXISTS {quote_identifier(obj.name)};\n")
        out.write(self._statement(obj.raw_definition) + "\n\n")

    def render_table(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        self.write_warnings(descriptor, out)
        out.write(f"DROP TABLE IF EXISTS {quote_identifier(obj.name)};\n")
        out.write(self._statement(obj.raw_definition) + "\n\n")

    def render_view(self, obj: CatalogObject, descriptor: TableDescriptor, out: TextIO) -> None:
        self.render_table(obj, descriptor, out)


RENDERERS: Dict[str, Type[Renderer]] = {
    "schema": SchemaRenderer,
    "sql": SqlRenderer,
}


def get_renderer(fmt: str = "schema", **kwargs: Any) -> Renderer:
    """Get a renderer by format name."""
    try:
        renderer_cls = RENDERERS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown output format: {fmt} (expected one of {', '.join(RENDERERS)})")
    return renderer_cls(**kwargs)


def render(
    snapshot: SchemaSnapshot,
    sink: TextIO,
    fmt: str = "schema",
    simple: bool = False,
) -> List[ObjectRenderFailure]:
    """Render a snapshot to a sink with the named format."""
    return get_renderer(fmt, simple=simple).render(snapshot, sink)
