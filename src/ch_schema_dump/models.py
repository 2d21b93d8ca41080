"""
Core data models for the ch_schema_dump package.

Defines the engine-neutral descriptors produced from a ClickHouse catalog:
catalog objects, column and index descriptors, the schema snapshot handed to
renderers, and the dump configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml


class ObjectKind(str, Enum):
    """Kind of a catalog object, fixed at classification time."""
    FUNCTION = "function"
    TABLE = "table"
    MATERIALIZED_VIEW = "materialized_view"


class DataType(str, Enum):
    """Normalized base types for ClickHouse columns."""
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    UUID = "uuid"
    ENUM = "enum"
    IP = "ip"
    JSON = "json"
    TUPLE = "tuple"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CatalogObject:
    """A named object read from the catalog."""
    name: str
    kind: ObjectKind
    raw_definition: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "raw_definition": self.raw_definition,
        }


@dataclass
class ColumnDescriptor:
    """
    Engine-neutral description of a single column.

    Modifier flags are ``None`` when they do not apply: ``is_unsigned`` is only
    set for the integer family, and every flag is ``None`` for a type that
    could not be recognized.
    """
    name: str
    base_type: DataType
    native_type: str = ""
    nullable: Optional[bool] = False
    is_array: Optional[bool] = False
    is_map: Optional[bool] = False
    is_low_cardinality: Optional[bool] = False
    is_unsigned: Optional[bool] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    limit: Optional[int] = None
    enum_values: Optional[List[str]] = None
    default: Optional[str] = None
    comment: Optional[str] = None
    in_primary_key: bool = False

    @property
    def is_recognized(self) -> bool:
        return self.base_type != DataType.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "base_type": self.base_type.value,
            "native_type": self.native_type,
            "nullable": self.nullable,
            "is_array": self.is_array,
            "is_map": self.is_map,
            "is_low_cardinality": self.is_low_cardinality,
            "is_unsigned": self.is_unsigned,
            "precision": self.precision,
            "scale": self.scale,
            "limit": self.limit,
            "enum_values": self.enum_values,
            "default": self.default,
            "comment": self.comment,
            "in_primary_key": self.in_primary_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnDescriptor:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            base_type=DataType(data.get("base_type", "unknown")),
            native_type=data.get("native_type", ""),
            nullable=data.get("nullable", False),
            is_array=data.get("is_array", False),
            is_map=data.get("is_map", False),
            is_low_cardinality=data.get("is_low_cardinality", False),
            is_unsigned=data.get("is_unsigned"),
            precision=data.get("precision"),
            scale=data.get("scale"),
            limit=data.get("limit"),
            enum_values=data.get("enum_values"),
            default=data.get("default"),
            comment=data.get("comment"),
            in_primary_key=data.get("in_primary_key", False),
        )


@dataclass
class IndexDescriptor:
    """A data-skipping index. Granularity is only set when the source declared one."""
    name: str
    expression: str
    type: str
    granularity: Optional[int] = None

    def parts(self) -> List[Tuple[str, Any]]:
        """Return the fields in render order: expression, name, type, granularity."""
        parts: List[Tuple[str, Any]] = [
            ("expression", self.expression),
            ("name", self.name),
            ("type", self.type),
        ]
        if self.granularity is not None:
            parts.append(("granularity", self.granularity))
        return parts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "expression": self.expression,
            "type": self.type,
            "granularity": self.granularity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndexDescriptor:
        return cls(
            name=data["name"],
            expression=data["expression"],
            type=data["type"],
            granularity=data.get("granularity"),
        )


@dataclass
class TableDescriptor:
    """Columns, indexes and engine options of a table or materialized view."""
    name: str
    kind: ObjectKind = ObjectKind.TABLE
    columns: List[ColumnDescriptor] = field(default_factory=list)
    indexes: List[IndexDescriptor] = field(default_factory=list)
    engine: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        """Return list of column names."""
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnDescriptor]:
        """Get column by exact name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "columns": [c.to_dict() for c in self.columns],
            "indexes": [i.to_dict() for i in self.indexes],
            "engine": self.engine,
            "options": self.options,
            "warnings": self.warnings,
        }


@dataclass(frozen=True)
class SchemaSnapshot:
    """
    Read-only view of a catalog, partitioned for deterministic output.

    Objects are always emitted functions first, then regular tables, then
    materialized views; each group keeps catalog enumeration order.
    """
    functions: Tuple[CatalogObject, ...] = ()
    tables: Tuple[CatalogObject, ...] = ()
    materialized_views: Tuple[CatalogObject, ...] = ()
    descriptors: Mapping[str, TableDescriptor] = field(default_factory=dict)
    database: Optional[str] = None

    @classmethod
    def from_objects(
        cls,
        objects: Iterable[CatalogObject],
        descriptors: Optional[Mapping[str, TableDescriptor]] = None,
        database: Optional[str] = None,
    ) -> SchemaSnapshot:
        """Partition a mixed sequence of objects by kind."""
        groups: Dict[ObjectKind, List[CatalogObject]] = {kind: [] for kind in ObjectKind}
        for obj in objects:
            groups[obj.kind].append(obj)
        return cls(
            functions=tuple(groups[ObjectKind.FUNCTION]),
            tables=tuple(groups[ObjectKind.TABLE]),
            materialized_views=tuple(groups[ObjectKind.MATERIALIZED_VIEW]),
            descriptors=dict(descriptors or {}),
            database=database,
        )

    def ordered(self) -> Iterator[CatalogObject]:
        """Yield objects in render order."""
        yield from self.functions
        yield from self.tables
        yield from self.materialized_views

    def __len__(self) -> int:
        return len(self.functions) + len(self.tables) + len(self.materialized_views)

    def get_descriptor(self, name: str) -> Optional[TableDescriptor]:
        return self.descriptors.get(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "database": self.database,
            "functions": [f.to_dict() for f in self.functions],
            "tables": [t.to_dict() for t in self.tables],
            "materialized_views": [v.to_dict() for v in self.materialized_views],
            "descriptors": {k: v.to_dict() for k, v in self.descriptors.items()},
        }


@dataclass
class DumpConfig:
    """Configuration for a dump run."""
    host: str = "localhost"
    port: int = 8123
    username: str = "default"
    password: str = ""
    database: str = "default"
    secure: bool = False

    simple: bool = False
    ignore_tables: List[str] = field(default_factory=list)
    output_format: str = "schema"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DumpConfig:
        """Create from a parsed config document."""
        conn = data.get("clickhouse", {}) or {}
        defaults = cls()
        return cls(
            host=conn.get("host", defaults.host),
            port=int(conn.get("port", defaults.port)),
            username=conn.get("username", defaults.username),
            password=conn.get("password", defaults.password) or "",
            database=conn.get("database", defaults.database),
            secure=bool(conn.get("secure", defaults.secure)),
            simple=bool(data.get("simple", False)),
            ignore_tables=list(data.get("ignore_tables", []) or []),
            output_format=data.get("format", defaults.output_format),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> DumpConfig:
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)
