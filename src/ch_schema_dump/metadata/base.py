"""Catalog source interface consumed by the snapshot builder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union


@dataclass
class NativeColumn:
    """A column as reported by the catalog, before translation."""
    name: str
    type: str
    default_kind: Optional[str] = None
    default_expression: Optional[str] = None
    comment: Optional[str] = None
    is_in_primary_key: bool = False

    @property
    def default(self) -> Optional[str]:
        """Default expression, only for plain DEFAULT columns."""
        if self.default_expression and (self.default_kind or "DEFAULT").upper() == "DEFAULT":
            return self.default_expression
        return None


IndexSource = Union[str, Mapping[str, Any]]


class CatalogSource(ABC):
    """
    Read-only access to a database catalog.

    Implementations raise CatalogUnavailable when the catalog cannot be
    queried.
    """

    database: Optional[str] = None

    @abstractmethod
    def list_functions(self) -> List[str]:
        """Names of user-defined functions, in catalog order."""
        pass

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Names of tables and views, in catalog order."""
        pass

    @abstractmethod
    def get_native_definition(self, name: str) -> str:
        """The object's CREATE statement."""
        pass

    @abstractmethod
    def get_columns(self, table_name: str) -> List[NativeColumn]:
        """Columns of a table, in declaration order."""
        pass

    @abstractmethod
    def get_native_index_lines(self, table_name: str) -> List[IndexSource]:
        """Index lines or structured index rows of a table."""
        pass

    def get_engine(self, table_name: str) -> Optional[str]:
        """Engine name, when the catalog reports it."""
        return None

    def get_table_options(self, table_name: str) -> Dict[str, str]:
        """Engine clause and keys (partition_by, order_by...)."""
        return {}
