"""
Helpers for ClickHouse DDL fragments.

Small text transforms applied to catalog output before it is rendered:
engine normalization, CAST stripping for simple dumps, function bodies and
materialized view parts.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

FUNCTION_PREFIX_PATTERN = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?FUNCTION\s+(.*?)\s+AS\b", re.IGNORECASE | re.DOTALL
)

REPLICATED_ARGS_PATTERN = re.compile(r"^Replicated(.*?)\('[^']+',\s*'[^']+',?\s?([^\)]*)?\)")
REPLICATED_BARE_PATTERN = re.compile(r"^Replicated(\w*MergeTree)(?:\(\))?(?=\s|$)")
BUFFER_DATABASE_PATTERN = re.compile(r"Buffer\('[^']+'")

CAST_PATTERN = re.compile(r"CAST\('?([^,']*)'?,\s?'.*?'\)")

ENGINE_KEYWORDS = (
    ("partition_by", "PARTITION BY"),
    ("primary_key", "PRIMARY KEY"),
    ("order_by", "ORDER BY"),
    ("sample_by", "SAMPLE BY"),
    ("ttl", "TTL"),
    ("settings", "SETTINGS"),
)
ENGINE_KEYWORD_PATTERN = re.compile(
    r"\s+(" + "|".join(kw.replace(" ", r"\s+") for _, kw in ENGINE_KEYWORDS) + r")\s+"
)

VIEW_QUERY_PATTERN = re.compile(r"\bAS\s+((?:SELECT|WITH)\b.*)$", re.IGNORECASE | re.DOTALL)
VIEW_TARGET_PATTERN = re.compile(r"\bTO\s+([`\"\w.]+)", re.IGNORECASE)


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier for ClickHouse."""
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


def function_body(sql: Optional[str]) -> str:
    """Strip the ``CREATE FUNCTION <name> AS`` prefix, leaving the lambda."""
    if not sql:
        return ""
    return FUNCTION_PREFIX_PATTERN.sub("", sql, count=1).strip()


def normalize_engine(engine: Optional[str]) -> Optional[str]:
    """
    Make an engine clause portable between clusters.

    ``ReplicatedMergeTree('/clickhouse/tables/{shard}/t', '{replica}', ver)``
    becomes ``MergeTree(ver)``, and a Buffer engine's hard-coded target
    database becomes ``currentDatabase()``.
    """
    if not engine:
        return engine
    engine = REPLICATED_ARGS_PATTERN.sub(r"\1(\2)", engine)
    engine = REPLICATED_BARE_PATTERN.sub(r"\1", engine)
    engine = BUFFER_DATABASE_PATTERN.sub("Buffer(currentDatabase()", engine)
    return engine


def strip_casts(expression: str) -> str:
    """Rewrite ``CAST('x', 'Type')`` to ``x``."""
    return CAST_PATTERN.sub(r"\1", expression)


def parse_engine_options(engine_full: Optional[str]) -> Dict[str, str]:
    """
    Split a full engine clause into its parts.

    ``MergeTree PARTITION BY toYYYYMM(d) ORDER BY id SETTINGS index_granularity = 8192``
    gives ``{"engine": "MergeTree", "partition_by": "toYYYYMM(d)",
    "order_by": "id", "settings": "index_granularity = 8192"}``.
    """
    if not engine_full:
        return {}
    text = " " + engine_full.strip()
    keys = {kw: key for key, kw in ENGINE_KEYWORDS}

    options: Dict[str, str] = {}
    pieces = ENGINE_KEYWORD_PATTERN.split(text)
    options["engine"] = pieces[0].strip()
    for i in range(1, len(pieces) - 1, 2):
        keyword = " ".join(pieces[i].split()).upper()
        options[keys[keyword]] = pieces[i + 1].strip()
    return options


def view_query(ddl: str) -> Optional[str]:
    """Return the SELECT body of a view definition."""
    match = VIEW_QUERY_PATTERN.search(ddl or "")
    return match.group(1).strip() if match else None


def view_target(ddl: str) -> Optional[str]:
    """Return the ``TO`` target table of a materialized view, if any."""
    if not ddl:
        return None
    match = VIEW_QUERY_PATTERN.search(ddl)
    head = ddl[:match.start()] if match else ddl
    target = VIEW_TARGET_PATTERN.search(head)
    return target.group(1).replace("`", "") if target else None
