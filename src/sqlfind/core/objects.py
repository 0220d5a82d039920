"""Core domain models for database objects.

This module defines the data structures used throughout the application to
represent searchable database objects, the actions that can be taken on a
picked object and the scripting operations understood by the backend.
These models are intentionally simple, immutable, and free of any
infrastructure or presentation concerns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "dbo"


class ObjectType(str, Enum):
    """
    Enumeration of the object kinds that can be searched.

    Values:
        TABLE: A user table.
        VIEW: A view.
        STORED_PROCEDURE: A T-SQL stored procedure.
        SCALAR_FUNCTION: A function returning a single value.
        TABLE_VALUED_FUNCTION: An inline or multi-statement table-valued function.
        SYNONYM: An alias for another object.
    """

    TABLE = "Table"
    VIEW = "View"
    STORED_PROCEDURE = "StoredProcedure"
    SCALAR_FUNCTION = "ScalarFunction"
    TABLE_VALUED_FUNCTION = "TableValuedFunction"
    SYNONYM = "Synonym"

    @property
    def has_columns(self) -> bool:
        """True for object kinds that expose a column list."""
        return self in (ObjectType.TABLE, ObjectType.VIEW)

    @property
    def is_function(self) -> bool:
        return self in (ObjectType.SCALAR_FUNCTION, ObjectType.TABLE_VALUED_FUNCTION)


# sys.objects.type_desc values returned by the bulk catalog query
_TYPE_CODES: dict[str, ObjectType] = {
    "TABLE": ObjectType.TABLE,
    "USER_TABLE": ObjectType.TABLE,
    "VIEW": ObjectType.VIEW,
    "SQL_STORED_PROCEDURE": ObjectType.STORED_PROCEDURE,
    "SQL_SCALAR_FUNCTION": ObjectType.SCALAR_FUNCTION,
    "SQL_INLINE_TABLE_VALUED_FUNCTION": ObjectType.TABLE_VALUED_FUNCTION,
    "SQL_TABLE_VALUED_FUNCTION": ObjectType.TABLE_VALUED_FUNCTION,
    "SYNONYM": ObjectType.SYNONYM,
}


def object_type_from_code(code: str | None) -> ObjectType:
    """
    Map a backend type code to an ObjectType.

    Unknown codes default to TABLE and are logged; they never fail a fetch.
    """
    normalized = (code or "").strip().upper()
    try:
        return _TYPE_CODES[normalized]
    except KeyError:
        logger.warning("Unknown object type: %r, defaulting to Table", code)
        return ObjectType.TABLE


class ScriptAction(str, Enum):
    """Action taken when an object is picked from the search results."""

    SELECT = "Select"
    CREATE = "Create"
    DELETE = "Delete"
    EXECUTE = "Execute"
    ALTER = "Alter"
    INSERT_NAME = "Insert Name"

    @classmethod
    def parse(cls, value: str) -> ScriptAction:
        """
        Parse a user-supplied action name.

        Matching ignores case, spaces, dashes and underscores, so
        `Insert Name`, `InsertName` and `insert-name` are all accepted.

        Raises:
            ValueError: If the name matches no action.
        """
        wanted = _squash(value)
        for action in cls:
            if _squash(action.value) == wanted or _squash(action.name) == wanted:
                return action
        choices = ", ".join(a.value for a in cls)
        raise ValueError(f"Unknown script action '{value}' (expected one of: {choices})")


def _squash(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class ScriptOperation(IntEnum):
    """Scripting operations accepted by the backend."""

    SELECT = 0
    CREATE = 1
    INSERT = 2
    UPDATE = 3
    DELETE = 4
    EXECUTE = 5
    ALTER = 6


@dataclass(frozen=True)
class ScriptTarget:
    """Object reference handed to the backend scripting call."""

    type: str
    schema: str
    name: str


@dataclass(frozen=True)
class DatabaseObject:
    """
    A searchable database object.

    Attributes:
        name: Object name.
        schema: Owning schema.
        type: Kind of object.
        database: Database the object was read from, if known.
        columns: Comma separated column list, attached by column enrichment.
        definition: Module definition, if loaded.
    """

    name: str
    schema: str
    type: ObjectType
    database: str | None = None
    columns: str | None = None
    definition: str | None = None

    @property
    def qualified_name(self) -> str:
        return qualified_name(self.schema, self.name)

    @property
    def key(self) -> str:
        """`schema.name` key used by the column metadata map."""
        return f"{self.schema}.{self.name}"

    @property
    def identity(self) -> tuple[str | None, str, str, ObjectType]:
        return (self.database, self.schema, self.name, self.type)


def qualified_name(schema: str, name: str) -> str:
    """Return the bracketed `[schema].[name]` identifier."""
    return f"[{schema}].[{name}]"


def parse_object_name(value: str) -> tuple[str, str]:
    """
    Split `schema.name` (brackets optional) into (schema, name).

    A bare name is placed in the `dbo` schema.
    """
    text = value.strip()
    if not text:
        raise ValueError("Object name must not be empty.")
    parts = [p.strip().strip("[]") for p in text.split(".", 1)]
    if len(parts) == 1:
        return DEFAULT_SCHEMA, parts[0]
    schema, name = parts
    if not schema or not name:
        raise ValueError("Object must be in the form `schema.name`.")
    return schema, name


def parse_object_type(value: str) -> ObjectType:
    """
    Parse a user-supplied object type (`table`, `StoredProcedure`, `stored-procedure`...).

    Raises:
        ValueError: If the name matches no object type.
    """
    wanted = _squash(value)
    for object_type in ObjectType:
        if wanted in (_squash(object_type.value), _squash(object_type.name)):
            return object_type
    choices = ", ".join(t.value for t in ObjectType)
    raise ValueError(f"Unknown object type '{value}' (expected one of: {choices})")
