"""
Error taxonomy for catalog translation.

Only CatalogUnavailable is fatal; the others are contained by the snapshot
builder and the renderers and reported inline in the output.
"""


class SchemaDumpError(Exception):
    """
    Base exception for all ch_schema_dump errors
    """
    pass


class CatalogUnavailable(SchemaDumpError):
    """
    Raised when the catalog cannot be queried; aborts the whole dump
    """
    pass


class MalformedIndexDefinition(SchemaDumpError):
    """
    Raised when an index definition does not have the expected shape
    """

    def __init__(self, definition, reason: str = "does not match INDEX <name> <expr> TYPE <type> GRANULARITY <n>"):
        self.definition = definition
        self.reason = reason
        super().__init__(f"Malformed index definition {definition!r}: {reason}")


class UnrecognizedColumnType(SchemaDumpError):
    """
    Raised when a native column type cannot be mapped to a base type
    """

    def __init__(self, native_type: str):
        self.native_type = native_type
        super().__init__(f"Unknown type '{native_type}'")


class ObjectRenderFailure(SchemaDumpError):
    """
    Raised when a single object cannot be rendered
    """

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Could not render {name!r}: {cause}")
