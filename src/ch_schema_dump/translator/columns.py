"""
Column descriptor builder.

Maps a ClickHouse native type string (``LowCardinality(Nullable(String))``,
``Array(UInt64)``, ``Decimal(18, 2)``...) to a ColumnDescriptor. Each
formatting decision is a separate function so it can be tested on its own:

- schema_array / schema_map / schema_low_cardinality: wrapper detection
- schema_unsigned: signedness, integer family only
- schema_limit: byte width or fixed length, never for floats

The builder never raises on an unknown type; it degrades the descriptor and
logs a warning so the rest of the table can still be dumped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ch_schema_dump.exceptions import UnrecognizedColumnType
from ch_schema_dump.models import ColumnDescriptor, DataType
from ch_schema_dump.translator.ddl import strip_casts

logger = logging.getLogger(__name__)


# ClickHouse scalar type mapping (names without arguments)
CLICKHOUSE_TYPE_MAP = {
    "String": DataType.STRING,
    "FixedString": DataType.STRING,
    "Float32": DataType.FLOAT,
    "Float64": DataType.FLOAT,
    "BFloat16": DataType.FLOAT,
    "Decimal": DataType.DECIMAL,
    "Decimal32": DataType.DECIMAL,
    "Decimal64": DataType.DECIMAL,
    "Decimal128": DataType.DECIMAL,
    "Decimal256": DataType.DECIMAL,
    "Bool": DataType.BOOLEAN,
    "Boolean": DataType.BOOLEAN,
    "Date": DataType.DATE,
    "Date32": DataType.DATE,
    "DateTime": DataType.DATETIME,
    "DateTime32": DataType.DATETIME,
    "DateTime64": DataType.DATETIME,
    "UUID": DataType.UUID,
    "Enum": DataType.ENUM,
    "Enum8": DataType.ENUM,
    "Enum16": DataType.ENUM,
    "IPv4": DataType.IP,
    "IPv6": DataType.IP,
    "JSON": DataType.JSON,
    "Object": DataType.JSON,
    "Tuple": DataType.TUPLE,
}

INTEGER_PATTERN = re.compile(r"^U?Int(8|16|32|64|128|256)$")
UNSIGNED_PATTERN = re.compile(r"(Nullable)?\(?UInt\d+\)?")

ARRAY_PATTERN = re.compile(r"Array\(")
MAP_PATTERN = re.compile(r"Map\(")
LOW_CARDINALITY_PATTERN = re.compile(r"LowCardinality\(")

# Precision implied by the DecimalNN(S) shorthands
DECIMAL_PRECISION = {
    "Decimal32": 9,
    "Decimal64": 18,
    "Decimal128": 38,
    "Decimal256": 76,
}

WRAPPERS = ("Nullable", "LowCardinality", "Array")

ENUM_LABEL_PATTERN = re.compile(r"'((?:[^'\\]|\\.)*)'")


@dataclass
class ParsedType:
    """Result of unwrapping a native type down to its scalar."""
    base_type: DataType
    nullable: bool = False
    precision: Optional[int] = None
    scale: Optional[int] = None
    limit: Optional[int] = None
    enum_values: Optional[List[str]] = None


def split_arguments(args: str) -> List[str]:
    """Split a type argument list on top-level commas."""
    parts: List[str] = []
    depth = 0
    quoted = False
    current: List[str] = []
    prev = ""
    for ch in args:
        if ch == "'" and prev != "\\":
            quoted = not quoted
        elif not quoted and ch == "(":
            depth += 1
        elif not quoted and ch == ")":
            depth -= 1
        if ch == "," and depth == 0 and not quoted:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        prev = ch
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def _split_call(native_type: str) -> Tuple[str, Optional[str]]:
    """Split ``Name(args)`` into ``("Name", "args")``."""
    text = native_type.strip()
    paren = text.find("(")
    if paren == -1:
        return text, None
    if not text.endswith(")"):
        raise UnrecognizedColumnType(native_type)
    return text[:paren].strip(), text[paren + 1:-1]


def parse_native_type(native_type: str) -> ParsedType:
    """
    Unwrap a native type and map its scalar to a base type.

    Raises:
        UnrecognizedColumnType: if the scalar is not a known ClickHouse type
    """
    nullable = False
    current = native_type.strip()

    while True:
        name, args = _split_call(current)
        if name in WRAPPERS and args is not None:
            if name == "Nullable":
                nullable = True
            current = args.strip()
            continue
        if name == "Map" and args is not None:
            key_value = split_arguments(args)
            if len(key_value) != 2:
                raise UnrecognizedColumnType(native_type)
            current = key_value[1]
            continue
        if name == "SimpleAggregateFunction" and args is not None:
            func_args = split_arguments(args)
            if len(func_args) < 2:
                raise UnrecognizedColumnType(native_type)
            current = func_args[-1]
            continue
        break

    if INTEGER_PATTERN.match(name):
        bits = int(INTEGER_PATTERN.match(name).group(1))
        return ParsedType(base_type=DataType.INTEGER, nullable=nullable, limit=bits // 8)

    base_type = CLICKHOUSE_TYPE_MAP.get(name)
    if base_type is None:
        raise UnrecognizedColumnType(native_type)

    parsed = ParsedType(base_type=base_type, nullable=nullable)
    arguments = split_arguments(args) if args else []

    if name == "FixedString" and arguments:
        parsed.limit = _to_int(arguments[0], native_type)
    elif name == "Decimal":
        if not arguments:
            raise UnrecognizedColumnType(native_type)
        parsed.precision = _to_int(arguments[0], native_type)
        parsed.scale = _to_int(arguments[1], native_type) if len(arguments) > 1 else 0
    elif name in DECIMAL_PRECISION:
        if not arguments:
            raise UnrecognizedColumnType(native_type)
        parsed.precision = DECIMAL_PRECISION[name]
        parsed.scale = _to_int(arguments[0], native_type)
    elif name == "DateTime64" and arguments:
        parsed.precision = _to_int(arguments[0], native_type)
    elif base_type == DataType.ENUM:
        parsed.enum_values = [
            label.replace("\\'", "'") for label in ENUM_LABEL_PATTERN.findall(args or "")
        ]

    return parsed


def _to_int(value: str, native_type: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise UnrecognizedColumnType(native_type) from None


def schema_array(native_type: str) -> bool:
    """True when an ``Array(`` wrapper occurs anywhere in the type."""
    return ARRAY_PATTERN.search(native_type) is not None


def schema_map(native_type: str) -> bool:
    return MAP_PATTERN.search(native_type) is not None


def schema_low_cardinality(native_type: str) -> bool:
    return LOW_CARDINALITY_PATTERN.search(native_type) is not None


def schema_unsigned(native_type: str, base_type: DataType, simple: bool = False) -> Optional[bool]:
    """
    Signedness of an integer column.

    Returns None (unspecified) for non-integer types and in simple mode.
    Like the wrapper checks, the match is unanchored: a UInt anywhere in
    the type counts, so ``Map(UInt8, Int32)`` is reported unsigned.
    """
    if base_type != DataType.INTEGER or simple:
        return None
    return UNSIGNED_PATTERN.search(native_type) is not None


def schema_limit(base_type: DataType, limit: Optional[int]) -> Optional[int]:
    """Floats never carry a limit."""
    if base_type == DataType.FLOAT:
        return None
    return limit


def build_column_descriptor(
    native_type: str,
    name: str = "",
    simple: bool = False,
    default: Optional[str] = None,
    comment: Optional[str] = None,
    in_primary_key: bool = False,
) -> ColumnDescriptor:
    """
    Build a ColumnDescriptor from a native type string.

    Args:
        native_type: ClickHouse type as reported by system.columns
        name: Column name
        simple: Leave signedness unspecified and strip CASTs from defaults
        default: Default expression, if any
        comment: Column comment, if any
        in_primary_key: Whether the column is part of the primary key

    Returns:
        ColumnDescriptor; for unrecognized types only base_type is populated
    """
    if default and simple:
        default = strip_casts(default)

    try:
        parsed = parse_native_type(native_type)
    except UnrecognizedColumnType as e:
        logger.warning(f"{e} for column '{name}'")
        return ColumnDescriptor(
            name=name,
            base_type=DataType.UNKNOWN,
            native_type=native_type,
            nullable=None,
            is_array=None,
            is_map=None,
            is_low_cardinality=None,
            is_unsigned=None,
            default=default or None,
            comment=comment or None,
            in_primary_key=in_primary_key,
        )

    is_float = parsed.base_type == DataType.FLOAT

    return ColumnDescriptor(
        name=name,
        base_type=parsed.base_type,
        native_type=native_type,
        nullable=parsed.nullable,
        is_array=schema_array(native_type),
        is_map=schema_map(native_type),
        is_low_cardinality=schema_low_cardinality(native_type),
        is_unsigned=schema_unsigned(native_type, parsed.base_type, simple),
        precision=None if is_float else parsed.precision,
        scale=None if is_float else parsed.scale,
        limit=schema_limit(parsed.base_type, parsed.limit),
        enum_values=parsed.enum_values,
        default=default or None,
        comment=comment or None,
        in_primary_key=in_primary_key,
    )


def column_options(column: ColumnDescriptor) -> Dict[str, Any]:
    """
    Options rendered after a column's type, in fixed order.

    Flags are only emitted when set; signedness is emitted both ways since
    ``unsigned: false`` and an absent key mean different things.
    """
    options: Dict[str, Any] = {}
    if column.is_unsigned is not None:
        options["unsigned"] = column.is_unsigned
    if column.is_array:
        options["array"] = True
    if column.is_map:
        options["map"] = True
    if column.is_low_cardinality:
        options["low_cardinality"] = True
    if column.nullable:
        options["null"] = True
    if column.limit is not None:
        options["limit"] = column.limit
    if column.precision is not None:
        options["precision"] = column.precision
    if column.scale is not None:
        options["scale"] = column.scale
    if column.enum_values:
        options["values"] = column.enum_values
    if column.default is not None:
        options["default"] = column.default
    if column.comment:
        options["comment"] = column.comment
    if column.in_primary_key:
        options["primary_key"] = True
    return options
