"""
Object classifier.

Partitions catalog objects into functions, regular tables and materialized
views. Functions come from the catalog's function listing; views are
recognized from the engine reported by the catalog, falling back to a
pattern match against the object's CREATE statement.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ch_schema_dump.exceptions import CatalogUnavailable
from ch_schema_dump.models import CatalogObject, ObjectKind

logger = logging.getLogger(__name__)


MATERIALIZED_VIEW_PATTERN = re.compile(r"CREATE.*MATERIALIZED.*VIEW", re.IGNORECASE | re.DOTALL)

MATERIALIZED_VIEW_ENGINE = "MaterializedView"


@dataclass
class Classification:
    """Three-way partition of catalog objects, each in enumeration order."""
    functions: List[CatalogObject] = field(default_factory=list)
    tables: List[CatalogObject] = field(default_factory=list)
    materialized_views: List[CatalogObject] = field(default_factory=list)

    def all(self) -> List[CatalogObject]:
        return self.functions + self.tables + self.materialized_views

    def names(self, kind: ObjectKind) -> List[str]:
        return [obj.name for obj in self.all() if obj.kind == kind]


def is_materialized_view_definition(definition: str) -> bool:
    """Check a CREATE statement for a materialized view."""
    return MATERIALIZED_VIEW_PATTERN.search(definition or "") is not None


def classify(
    object_names: Iterable[str],
    definitions: Mapping[str, str],
    functions: Iterable[str] = (),
    engines: Optional[Mapping[str, Optional[str]]] = None,
) -> Classification:
    """
    Classify catalog objects.

    Args:
        object_names: All object names in catalog order (functions included or not)
        definitions: Native CREATE statement per object name
        functions: Names the catalog reports as functions
        engines: Optional engine name per object; used before the text fallback

    Returns:
        Classification with exhaustive, disjoint partitions

    Raises:
        CatalogUnavailable: if a non-function object has no definition
    """
    function_names = list(functions)
    function_set = set(function_names)
    engines = engines or {}

    result = Classification()
    seen = set()

    # Functions reported by the catalog but missing from object_names still count
    ordered_names = list(object_names)
    ordered_names += [name for name in function_names if name not in ordered_names]

    for name in ordered_names:
        if name in seen:
            continue
        seen.add(name)

        if name in function_set:
            result.functions.append(CatalogObject(
                name=name,
                kind=ObjectKind.FUNCTION,
                raw_definition=definitions.get(name) or "",
            ))
            continue

        if name not in definitions or definitions[name] is None:
            raise CatalogUnavailable(f"No definition available for {name!r}")
        definition = definitions[name]

        engine = engines.get(name)
        if engine:
            is_view = engine == MATERIALIZED_VIEW_ENGINE
        else:
            is_view = is_materialized_view_definition(definition)

        kind = ObjectKind.MATERIALIZED_VIEW if is_view else ObjectKind.TABLE
        obj = CatalogObject(name=name, kind=kind, raw_definition=definition)
        if is_view:
            result.materialized_views.append(obj)
        else:
            result.tables.append(obj)

    logger.debug(
        f"Classified {len(result.functions)} functions, {len(result.tables)} tables, "
        f"{len(result.materialized_views)} materialized views"
    )
    return result


def classify_catalog(catalog: Any) -> Classification:
    """
    Query a catalog source and classify everything in it.

    Any failure while talking to the catalog is raised as CatalogUnavailable;
    no partial partition is returned.
    """
    try:
        functions = list(catalog.list_functions())
        tables = list(catalog.list_tables())

        definitions: Dict[str, str] = {}
        for name in functions:
            definitions[name] = catalog.get_native_definition(name)
        engines: Dict[str, Optional[str]] = {}
        for name in tables:
            definitions[name] = catalog.get_native_definition(name)
            engines[name] = catalog.get_engine(name)
    except CatalogUnavailable:
        raise
    except Exception as e:
        raise CatalogUnavailable(f"Catalog query failed: {e}") from e

    return classify(tables, definitions, functions=functions, engines=engines)
