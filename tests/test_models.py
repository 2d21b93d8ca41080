"""Tests for core data models."""

import dataclasses
import tempfile
from pathlib import Path

import pytest

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


class TestCatalogObject:
    """Tests for CatalogObject."""

    def test_kind_is_immutable(self):
        obj = CatalogObject(name="events", kind=ObjectKind.TABLE, raw_definition="CREATE TABLE events")
        with pytest.raises(dataclasses.FrozenInstanceError):
            obj.kind = ObjectKind.MATERIALIZED_VIEW

    def test_to_dict(self):
        obj = CatalogObject(name="f1", kind=ObjectKind.FUNCTION)
        assert obj.to_dict() == {"name": "f1", "kind": "function", "raw_definition": ""}


class TestColumnDescriptor:
    """Tests for ColumnDescriptor."""

    def test_serialization(self):
        col = ColumnDescriptor(
            name="amount",
            base_type=DataType.DECIMAL,
            native_type="Nullable(Decimal(18, 2))",
            nullable=True,
            precision=18,
            scale=2,
        )
        restored = ColumnDescriptor.from_dict(col.to_dict())

        assert restored == col
        assert restored.is_unsigned is None

    def test_is_recognized(self):
        assert ColumnDescriptor(name="x", base_type=DataType.STRING).is_recognized
        assert not ColumnDescriptor(name="x", base_type=DataType.UNKNOWN).is_recognized


class TestIndexDescriptor:
    """Tests for IndexDescriptor."""

    def test_parts_order(self):
        index = IndexDescriptor(name="idx1", expression="col1", type="minmax", granularity=4)
        assert [key for key, _ in index.parts()] == ["expression", "name", "type", "granularity"]

    def test_parts_without_granularity(self):
        index = IndexDescriptor(name="idx1", expression="col1", type="minmax")
        assert [key for key, _ in index.parts()] == ["expression", "name", "type"]


class TestSchemaSnapshot:
    """Tests for SchemaSnapshot."""

    def test_from_objects_partitions_by_kind(self):
        v1 = CatalogObject(name="v1", kind=ObjectKind.MATERIALIZED_VIEW)
        t1 = CatalogObject(name="t1", kind=ObjectKind.TABLE)
        f1 = CatalogObject(name="f1", kind=ObjectKind.FUNCTION)
        t2 = CatalogObject(name="t2", kind=ObjectKind.TABLE)

        snapshot = SchemaSnapshot.from_objects([v1, t1, f1, t2])

        assert [o.name for o in snapshot.ordered()] == ["f1", "t1", "t2", "v1"]
        assert len(snapshot) == 4

    def test_snapshot_is_read_only(self):
        snapshot = SchemaSnapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.tables = ()

    def test_get_descriptor(self):
        descriptor = TableDescriptor(name="t1")
        snapshot = SchemaSnapshot.from_objects(
            [CatalogObject(name="t1", kind=ObjectKind.TABLE)],
            descriptors={"t1": descriptor},
        )
        assert snapshot.get_descriptor("t1") is descriptor
        assert snapshot.get_descriptor("missing") is None


class TestDumpConfig:
    """Tests for DumpConfig."""

    def test_defaults(self):
        config = DumpConfig()
        assert config.port == 8123
        assert config.output_format == "schema"
        assert config.ignore_tables == []

    def test_from_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text(
                "clickhouse:\n"
                "  host: ch.internal\n"
                "  port: 8443\n"
                "  database: analytics\n"
                "  secure: true\n"
                "simple: true\n"
                "ignore_tables:\n"
                "  - 'tmp_.*'\n"
                "format: sql\n"
            )
            config = DumpConfig.from_yaml(path)

        assert config.host == "ch.internal"
        assert config.port == 8443
        assert config.database == "analytics"
        assert config.secure is True
        assert config.simple is True
        assert config.ignore_tables == ["tmp_.*"]
        assert config.output_format == "sql"
        assert config.username == "default"
