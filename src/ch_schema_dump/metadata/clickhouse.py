"""
ClickHouse catalog source using clickhouse-connect.

Reads user-defined functions, tables, columns and data-skipping indexes
from the ``system`` database and CREATE statements via ``SHOW CREATE``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ch_schema_dump.exceptions import CatalogUnavailable
from ch_schema_dump.metadata.base import CatalogSource, IndexSource, NativeColumn
from ch_schema_dump.translator.ddl import parse_engine_options, quote_identifier
from ch_schema_dump.translator.indexes import extract_index_lines

logger = logging.getLogger(__name__)


class ClickHouseCatalog(CatalogSource):
    """
    Catalog source for a single ClickHouse database.

    Uses:
    - system.functions (origin = 'SQLUserDefined')
    - system.tables (temporary and .inner tables excluded)
    - system.columns
    - system.data_skipping_indices, falling back to the CREATE statement
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8123,
        username: str = "default",
        password: str = "",
        database: str = "default",
        secure: bool = False,
        client: Optional[Any] = None,
    ):
        """
        Initialize catalog with connection settings.

        Args:
            host: ClickHouse host
            port: HTTP(S) port
            username: User name
            password: Password
            database: Database to dump
            secure: Use HTTPS
            client: Existing clickhouse-connect client or None to create one
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.database = database
        self.secure = secure
        self._client = client
        self._owns_client = False

        self._tables: Optional[Dict[str, Dict[str, Any]]] = None
        self._functions: Optional[Dict[str, str]] = None
        self._definitions: Dict[str, str] = {}

    def connect(self) -> None:
        """Create the client if one was not supplied."""
        if self._client is not None:
            return

        import clickhouse_connect

        try:
            self._client = clickhouse_connect.get_client(
                host=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                database=self.database,
                secure=self.secure,
            )
        except Exception as e:
            raise CatalogUnavailable(
                f"Error connecting to ClickHouse at {self.host}:{self.port}: {e}"
            ) from e
        self._owns_client = True
        logger.info(f"Connected to ClickHouse at {self.host}:{self.port} as {self.username}")

    def disconnect(self) -> None:
        """Close the client if we own it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
            self._owns_client = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def client(self):
        """Get the clickhouse-connect client."""
        if self._client is None:
            self.connect()
        return self._client

    def _query(self, sql: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run a query and return rows as dictionaries."""
        try:
            result = self.client.query(sql, parameters=parameters or {})
            return list(result.named_results())
        except CatalogUnavailable:
            raise
        except Exception as e:
            raise CatalogUnavailable(f"Catalog query failed: {e}") from e

    def _load_functions(self) -> Dict[str, str]:
        if self._functions is None:
            rows = self._query(
                "SELECT name, create_query FROM system.functions "
                "WHERE origin = 'SQLUserDefined' ORDER BY name"
            )
            self._functions = {str(row["name"]): str(row.get("create_query") or "") for row in rows}
        return self._functions

    def _load_tables(self) -> Dict[str, Dict[str, Any]]:
        if self._tables is None:
            rows = self._query(
                "SELECT name, engine, engine_full FROM system.tables "
                "WHERE database = {database:String} "
                "AND is_temporary = 0 "
                "AND name NOT LIKE '.inner%' "
                "ORDER BY name",
                {"database": self.database},
            )
            self._tables = {str(row["name"]): row for row in rows}
        return self._tables

    def list_functions(self) -> List[str]:
        return list(self._load_functions().keys())

    def list_tables(self) -> List[str]:
        return list(self._load_tables().keys())

    def get_native_definition(self, name: str) -> str:
        """Return the CREATE statement of a function, table or view."""
        if name in self._definitions:
            return self._definitions[name]

        functions = self._load_functions()
        if name in functions:
            definition = functions[name]
        else:
            sql = f"SHOW CREATE TABLE {quote_identifier(self.database)}.{quote_identifier(name)}"
            try:
                rows = self.client.query(sql).result_rows
            except Exception as e:
                raise CatalogUnavailable(f"Could not show create table {name!r}: {e}") from e
            if not rows:
                raise CatalogUnavailable(f"Empty CREATE statement for {name!r}")
            definition = str(rows[0][0]).strip()

        self._definitions[name] = definition
        return definition

    def get_engine(self, table_name: str) -> Optional[str]:
        row = self._load_tables().get(table_name)
        return str(row["engine"]) if row and row.get("engine") else None

    def get_table_options(self, table_name: str) -> Dict[str, str]:
        row = self._load_tables().get(table_name)
        if not row:
            return {}
        return parse_engine_options(row.get("engine_full") or row.get("engine"))

    def get_columns(self, table_name: str) -> List[NativeColumn]:
        rows = self._query(
            "SELECT name, type, default_kind, default_expression, comment, is_in_primary_key "
            "FROM system.columns "
            "WHERE database = {database:String} AND table = {table:String} "
            "ORDER BY position",
            {"database": self.database, "table": table_name},
        )
        return [
            NativeColumn(
                name=str(row["name"]),
                type=str(row["type"]),
                default_kind=row.get("default_kind") or None,
                default_expression=row.get("default_expression") or None,
                comment=row.get("comment") or None,
                is_in_primary_key=bool(row.get("is_in_primary_key")),
            )
            for row in rows
        ]

    def get_native_index_lines(self, table_name: str) -> List[IndexSource]:
        """
        Return structured index rows, or index lines scanned from the DDL
        on servers without system.data_skipping_indices.type_full.
        """
        try:
            result = self.client.query(
                "SELECT name, expr, type_full, granularity "
                "FROM system.data_skipping_indices "
                "WHERE database = {database:String} AND table = {table:String}",
                parameters={"database": self.database, "table": table_name},
            )
            return [dict(row) for row in result.named_results()]
        except Exception as e:
            logger.debug(f"Falling back to DDL scan for indexes of {table_name}: {e}")

        return list(extract_index_lines(self.get_native_definition(table_name)))
