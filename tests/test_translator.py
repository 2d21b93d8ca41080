"""
Tests for the translator module.

Tests object classification, column descriptors, index descriptors and the
DDL helpers.
"""

import pytest

from ch_schema_dump.exceptions import CatalogUnavailable, MalformedIndexDefinition
from ch_schema_dump.models import DataType, ObjectKind
from ch_schema_dump.translator import (
    build_column_descriptor,
    build_index_descriptor,
    classify,
    classify_catalog,
    column_options,
    extract_index_lines,
)
from ch_schema_dump.translator.ddl import (
    function_body,
    normalize_engine,
    parse_engine_options,
    quote_identifier,
    strip_casts,
    view_query,
    view_target,
)


MV_DDL = (
    "CREATE MATERIALIZED VIEW analytics.daily_mv TO analytics.daily\n"
    "(\n    `day` Date,\n    `hits` UInt64\n)\n"
    "AS SELECT toDate(ts) AS day, count() AS hits FROM analytics.events GROUP BY day"
)


class TestClassifier:
    """Tests for object classification."""

    def test_three_way_partition(self):
        definitions = {
            "events": "CREATE TABLE analytics.events (`id` UInt64) ENGINE = MergeTree ORDER BY id",
            "daily_mv": MV_DDL,
            "linear": "CREATE FUNCTION linear AS (x, k, b) -> k*x + b",
        }
        result = classify(["daily_mv", "events"], definitions, functions=["linear"])

        assert [o.name for o in result.functions] == ["linear"]
        assert [o.name for o in result.tables] == ["events"]
        assert [o.name for o in result.materialized_views] == ["daily_mv"]
        assert result.materialized_views[0].kind == ObjectKind.MATERIALIZED_VIEW

    def test_partitions_are_exhaustive_and_disjoint(self):
        names = ["a", "b", "c", "d", "f"]
        definitions = {
            "a": "CREATE TABLE a (x UInt8) ENGINE = Memory",
            "b": "create materialized view b to a as select 1 as x",
            "c": "CREATE TABLE c (x UInt8) ENGINE = Log",
            "d": "CREATE\nMATERIALIZED\nVIEW d AS SELECT 1",
            "f": "CREATE FUNCTION f AS x -> x",
        }
        result = classify(names, definitions, functions=["f"])

        buckets = [
            {o.name for o in result.functions},
            {o.name for o in result.tables},
            {o.name for o in result.materialized_views},
        ]
        assert set().union(*buckets) == set(names)
        assert sum(len(b) for b in buckets) == len(names)
        assert buckets[2] == {"b", "d"}

    def test_functions_are_never_classified_by_text(self):
        definitions = {"t": "CREATE TABLE t (x String) ENGINE = Memory COMMENT 'CREATE FUNCTION'"}
        result = classify(["t"], definitions)
        assert [o.name for o in result.tables] == ["t"]
        assert result.functions == []

    def test_engine_metadata_wins_over_text(self):
        definitions = {
            "looks_like_view": "CREATE TABLE t (c String DEFAULT 'CREATE MATERIALIZED VIEW') ENGINE = Memory",
        }
        result = classify(["looks_like_view"], definitions, engines={"looks_like_view": "Memory"})
        assert [o.name for o in result.tables] == ["looks_like_view"]

    def test_preserves_enumeration_order(self):
        definitions = {name: f"CREATE TABLE {name} (x UInt8) ENGINE = Memory" for name in ["z", "a", "m"]}
        result = classify(["z", "a", "m"], definitions)
        assert [o.name for o in result.tables] == ["z", "a", "m"]

    def test_missing_definition_fails(self):
        with pytest.raises(CatalogUnavailable):
            classify(["events"], {})

    def test_classify_catalog_wraps_failures(self):
        class BrokenCatalog:
            def list_functions(self):
                raise ConnectionError("connection refused")

        with pytest.raises(CatalogUnavailable) as excinfo:
            classify_catalog(BrokenCatalog())
        assert "connection refused" in str(excinfo.value)


class TestColumnDescriptor:
    """Tests for the column descriptor builder."""

    @pytest.mark.parametrize("native_type", [
        "Array(String)",
        "Array(Array(UInt8))",
        "Nullable(Array(String))",
        "Map(String, Array(UInt64))",
        "LowCardinality(Nullable(String))",
    ])
    def test_array_detection(self, native_type):
        col = build_column_descriptor(native_type, name="c")
        assert col.is_array is ("Array(" in native_type)

    def test_nested_array_matches_anywhere(self):
        col = build_column_descriptor("Map(String, Array(UInt64))", name="c")
        assert col.is_array is True
        assert col.is_map is True

    @pytest.mark.parametrize("native_type", [
        "UInt8", "UInt64", "Nullable(UInt32)", "LowCardinality(UInt16)", "Array(UInt256)",
    ])
    def test_unsigned_integers(self, native_type):
        col = build_column_descriptor(native_type, name="c")
        assert col.base_type == DataType.INTEGER
        assert col.is_unsigned is True

    @pytest.mark.parametrize("native_type", ["Int8", "Int64", "Nullable(Int32)"])
    def test_signed_integers(self, native_type):
        col = build_column_descriptor(native_type, name="c")
        assert col.is_unsigned is False

    @pytest.mark.parametrize("native_type", ["String", "Float64", "Decimal(10, 2)", "DateTime"])
    def test_unsigned_absent_for_non_integers(self, native_type):
        col = build_column_descriptor(native_type, name="c")
        assert col.is_unsigned is None
        assert "unsigned" not in column_options(col)

    def test_unsigned_matches_anywhere_in_type(self):
        col = build_column_descriptor("Map(UInt8, Int32)", name="c")
        assert col.base_type == DataType.INTEGER
        assert col.limit == 4
        assert col.is_unsigned is True

    def test_simple_mode_leaves_signedness_unspecified(self):
        col = build_column_descriptor("Int32", name="c", simple=True)
        assert col.is_unsigned is None

    @pytest.mark.parametrize("native_type", ["Float32", "Float64", "Nullable(Float64)", "Array(Float32)"])
    def test_floats_never_carry_limit(self, native_type):
        col = build_column_descriptor(native_type, name="c")
        assert col.base_type == DataType.FLOAT
        assert col.limit is None
        assert col.precision is None
        assert col.scale is None
        options = column_options(col)
        assert "limit" not in options
        assert "precision" not in options

    def test_integer_limit_is_byte_width(self):
        assert build_column_descriptor("UInt8").limit == 1
        assert build_column_descriptor("Int64").limit == 8
        assert build_column_descriptor("Int128").limit == 16

    def test_wrappers(self):
        col = build_column_descriptor("LowCardinality(Nullable(String))", name="country")
        assert col.base_type == DataType.STRING
        assert col.nullable is True
        assert col.is_low_cardinality is True
        assert col.is_array is False
        assert col.is_map is False

    def test_map_uses_value_type(self):
        col = build_column_descriptor("Map(String, UInt64)", name="counters")
        assert col.base_type == DataType.INTEGER
        assert col.is_map is True
        assert col.is_unsigned is True

    def test_decimal_precision_and_scale(self):
        col = build_column_descriptor("Decimal(18, 4)")
        assert (col.precision, col.scale) == (18, 4)

        col = build_column_descriptor("Decimal64(2)")
        assert (col.precision, col.scale) == (18, 2)

    def test_datetime64_precision(self):
        col = build_column_descriptor("DateTime64(3, 'UTC')")
        assert col.base_type == DataType.DATETIME
        assert col.precision == 3

    def test_fixed_string_limit(self):
        col = build_column_descriptor("FixedString(16)")
        assert col.base_type == DataType.STRING
        assert col.limit == 16

    def test_enum_values(self):
        col = build_column_descriptor("Enum8('active' = 1, 'it\\'s' = 2)")
        assert col.base_type == DataType.ENUM
        assert col.enum_values == ["active", "it's"]

    @pytest.mark.parametrize("native_type", ["Nested(a String)", "Frobnicate", "Array(Geometry)", "Array(String"])
    def test_unknown_type_degrades(self, native_type, caplog):
        col = build_column_descriptor(native_type, name="odd")

        assert col.base_type == DataType.UNKNOWN
        assert col.native_type == native_type
        assert col.nullable is None
        assert col.is_array is None
        assert col.is_map is None
        assert col.is_low_cardinality is None
        assert col.is_unsigned is None
        assert "Unknown type" in caplog.text

    def test_simple_mode_strips_casts_from_defaults(self):
        col = build_column_descriptor("String", default="CAST('new', 'String')", simple=True)
        assert col.default == "new"

        col = build_column_descriptor("String", default="CAST('new', 'String')")
        assert col.default == "CAST('new', 'String')"


class TestIndexDescriptor:
    """Tests for the index descriptor builder."""

    def test_parse_line(self):
        index = build_index_descriptor("INDEX idx1 col1 TYPE minmax GRANULARITY 4")
        assert index.name == "idx1"
        assert index.expression == "col1"
        assert index.type == "minmax"
        assert index.granularity == 4

    def test_expression_and_type_with_spaces(self):
        index = build_index_descriptor("INDEX idx_lower lower(name) TYPE bloom_filter(0.01) GRANULARITY 1,")
        assert index.expression == "lower(name)"
        assert index.type == "bloom_filter(0.01)"
        assert index.granularity == 1

    def test_missing_granularity_fails(self):
        with pytest.raises(MalformedIndexDefinition):
            build_index_descriptor("INDEX idx1 col1 TYPE set(100)")

    def test_structured_row_without_granularity(self):
        index = build_index_descriptor({"name": "idx1", "expr": "col1", "type": "set(100)"})
        assert index.type == "set(100)"
        assert index.granularity is None

    def test_missing_expression_fails(self):
        with pytest.raises(MalformedIndexDefinition):
            build_index_descriptor("INDEX bad TYPE x")

    @pytest.mark.parametrize("line", [
        "INDEX idx1 col1 TYPE minmax GRANULARITY four",
        "INDEX idx1 col1 TYPE minmax GRANULARITY -1",
        "INDEX idx1 col1 TYPE minmax GRANULARITY",
        "INDEX idx1 col1 TYPE minmax GRANULARITY 4 extra",
        "INDEX idx1 col1 TYPE minmax GRANULARITY  4",
        "INDEX idx1 col1 TYPE minmax GRANULARITY 1 GRANULARITY 2",
        "PROJECTION p (SELECT *)",
        "",
    ])
    def test_malformed_lines(self, line):
        with pytest.raises(MalformedIndexDefinition):
            build_index_descriptor(line)

    def test_structured_row(self):
        index = build_index_descriptor({"name": "idx1", "expr": "col1", "type_full": "minmax", "granularity": 4})
        assert (index.name, index.expression, index.type, index.granularity) == ("idx1", "col1", "minmax", 4)

    def test_structured_row_bad_granularity(self):
        with pytest.raises(MalformedIndexDefinition):
            build_index_descriptor({"name": "idx1", "expr": "col1", "type": "minmax", "granularity": "x"})

    def test_extract_index_lines(self):
        ddl = (
            "CREATE TABLE analytics.events\n(\n"
            "    `id` UInt64,\n"
            "    `name` String,\n"
            "    INDEX idx_name name TYPE bloom_filter GRANULARITY 1,\n"
            "    INDEX idx_id id TYPE minmax GRANULARITY 4\n"
            ")\nENGINE = MergeTree\nORDER BY id"
        )
        lines = extract_index_lines(ddl)
        assert len(lines) == 2
        assert build_index_descriptor(lines[0]).name == "idx_name"
        assert build_index_descriptor(lines[1]).granularity == 4

    def test_extract_index_lines_single_line_ddl(self):
        ddl = (
            "CREATE TABLE db.t (`a` UInt8, "
            "INDEX i1 a TYPE minmax GRANULARITY 1, "
            "INDEX i2 a TYPE set(10) GRANULARITY 2) "
            "ENGINE = MergeTree ORDER BY a"
        )
        lines = extract_index_lines(ddl)
        indexes = [build_index_descriptor(line) for line in lines]

        assert [(i.name, i.type, i.granularity) for i in indexes] == [
            ("i1", "minmax", 1),
            ("i2", "set(10)", 2),
        ]


class TestDdlHelpers:
    """Tests for DDL text helpers."""

    def test_quote_identifier(self):
        assert quote_identifier("events") == "`events`"
        assert quote_identifier("a`b") == "`a\\`b`"

    def test_function_body(self):
        assert function_body("CREATE FUNCTION linear AS (x, k, b) -> k*x + b") == "(x, k, b) -> k*x + b"
        assert function_body(None) == ""

    def test_normalize_replicated_engine(self):
        engine = "ReplicatedReplacingMergeTree('/clickhouse/tables/{shard}/events', '{replica}', version)"
        assert normalize_engine(engine) == "ReplacingMergeTree(version)"
        assert normalize_engine("ReplicatedMergeTree('/p', '{replica}')") == "MergeTree()"
        assert normalize_engine("ReplicatedMergeTree") == "MergeTree"
        assert normalize_engine("MergeTree") == "MergeTree"

    def test_normalize_buffer_engine(self):
        engine = "Buffer('analytics', 'events', 16, 10, 100, 10000, 1000000, 10000000, 100000000)"
        assert normalize_engine(engine).startswith("Buffer(currentDatabase(), 'events'")

    def test_strip_casts(self):
        assert strip_casts("CAST('pending', 'String')") == "pending"
        assert strip_casts("CAST(0, 'UInt8')") == "0"
        assert strip_casts("now()") == "now()"

    def test_parse_engine_options(self):
        options = parse_engine_options(
            "MergeTree PARTITION BY toYYYYMM(day) ORDER BY (id, day) SETTINGS index_granularity = 8192"
        )
        assert options == {
            "engine": "MergeTree",
            "partition_by": "toYYYYMM(day)",
            "order_by": "(id, day)",
            "settings": "index_granularity = 8192",
        }
        assert parse_engine_options(None) == {}

    def test_view_parts(self):
        assert view_target(MV_DDL) == "analytics.daily"
        assert view_query(MV_DDL).startswith("SELECT toDate(ts) AS day")
        assert view_target("CREATE MATERIALIZED VIEW mv ENGINE = Memory AS SELECT 1") is None
