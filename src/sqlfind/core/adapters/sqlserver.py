"""SQL Server backend built on pymssql.

SqlServerAdapter implements the ConnectionProvider interface for a single
configured profile: it opens pymssql connections as sessions, runs catalog
queries and builds object scripts from system catalog metadata.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Callable

import pymssql

from sqlfind.core.config import ConnectionProfile
from sqlfind.core.objects import ScriptOperation, ScriptTarget, qualified_name
from sqlfind.core.queries import (
    OBJECT_COLUMNS_QUERY,
    OBJECT_DEFINITION_QUERY,
    OBJECT_KIND_QUERY,
    OBJECT_PARAMETERS_QUERY,
    SYNONYM_TARGET_QUERY,
    sql_literal,
)

logger = logging.getLogger(__name__)

_SELECT_ROW_LIMIT = 1000

_CREATE_MODULE = re.compile(
    r"\bCREATE\s+(?:OR\s+ALTER\s+)?(PROCEDURE|PROC|VIEW|FUNCTION|TRIGGER)\b",
    re.IGNORECASE,
)

_SIZED_TYPES = {"varchar", "char", "varbinary", "binary"}
_UNICODE_TYPES = {"nvarchar", "nchar"}
_PRECISION_TYPES = {"decimal", "numeric"}
_SCALE_TYPES = {"datetime2", "time", "datetimeoffset"}


def render_column_type(column: dict[str, Any]) -> str:
    """Render a sys.columns/sys.types row as a T-SQL type declaration."""
    type_name = str(column.get("TypeName") or "")
    lowered = type_name.lower()
    max_length = int(column.get("MaxLength") or 0)

    if lowered in _SIZED_TYPES or lowered in _UNICODE_TYPES:
        if max_length == -1:
            return f"[{type_name}](max)"
        length = max_length // 2 if lowered in _UNICODE_TYPES else max_length
        return f"[{type_name}]({length})"
    if lowered in _PRECISION_TYPES:
        return f"[{type_name}]({column.get('Precision')}, {column.get('Scale')})"
    if lowered in _SCALE_TYPES:
        return f"[{type_name}]({column.get('Scale')})"
    return f"[{type_name}]"


def to_alter(definition: str) -> str | None:
    """Rewrite the leading CREATE of a module definition into ALTER."""
    if not _CREATE_MODULE.search(definition):
        return None
    return _CREATE_MODULE.sub(lambda m: f"ALTER {m.group(1).upper()}", definition, count=1)


class SqlServerAdapter:
    """Adapter around pymssql connections for one connection profile."""

    def __init__(
        self,
        profile: ConnectionProfile,
        *,
        database: str | None = None,
        connect_fn: Callable[..., Any] = pymssql.connect,
    ) -> None:
        self.profile = profile
        self.database = database
        self._connect_fn = connect_fn
        self._sessions: dict[str, Any] = {}

    def __enter__(self) -> SqlServerAdapter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def active_connection_identity(self) -> str | None:
        """Return the identity of the configured profile."""
        return self.profile.identity

    def active_database(self) -> str | None:
        """Return the database override, else the profile's database."""
        return self.database or self.profile.database

    def connect(self, identity: str, database: str | None = None) -> str | None:
        """Open a pymssql connection and register it as a session."""
        if identity != self.profile.identity:
            logger.warning("Unknown connection identity: %s", identity)
            return None

        conn = self._connect_fn(
            server=self.profile.server,
            port=str(self.profile.port),
            user=self.profile.user,
            password=self.profile.password,
            database=database or "",
            login_timeout=self.profile.login_timeout,
            timeout=self.profile.timeout,
            as_dict=True,
            autocommit=True,
        )
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = conn
        logger.debug("Opened session %s (database=%s)", session_id, database or "default")
        return session_id

    def _connection(self, session_id: str) -> Any:
        try:
            return self._sessions[session_id]
        except KeyError as exc:
            raise ValueError(f"Unknown session: {session_id}") from exc

    def execute_query(self, session_id: str, sql: str) -> list[dict[str, Any]]:
        """
        Run a batch and return the rows of its last result set.

        Batches such as `USE [db]; SELECT ...` produce several results; only
        the last one carrying rows is returned.
        """
        cursor = self._connection(session_id).cursor()
        try:
            cursor.execute(sql)
            rows: list[dict[str, Any]] = []
            while True:
                if cursor.description:
                    rows = [dict(row) for row in cursor.fetchall()]
                if not cursor.nextset():
                    break
            return rows
        finally:
            cursor.close()

    def disconnect(self, session_id: str) -> None:
        """Close one session's connection and forget it."""
        conn = self._sessions.pop(session_id, None)
        if conn is None:
            return
        try:
            conn.close()
        except pymssql.Error:
            logger.warning("Failed to close session %s", session_id)
        else:
            logger.debug("Closed session %s", session_id)

    def close(self) -> None:
        """Close every open session."""
        for session_id in list(self._sessions):
            self.disconnect(session_id)

    # Scripting

    def script_object(
        self, session_id: str, operation: ScriptOperation, target: ScriptTarget
    ) -> str | None:
        """Build a script for an object from catalog metadata."""
        qn = qualified_name(target.schema, target.name)
        literal = sql_literal(qn)

        if operation == ScriptOperation.SELECT:
            return self._script_select(session_id, target, qn, literal)
        if operation == ScriptOperation.CREATE:
            return self._script_create(session_id, target, qn, literal)
        if operation == ScriptOperation.ALTER:
            if target.type in ("Table", "Synonym"):
                return None
            definition = self._definition(session_id, literal)
            return to_alter(definition) if definition else None
        if operation == ScriptOperation.EXECUTE:
            if target.type != "StoredProcedure":
                return None
            return self._script_execute(session_id, qn, literal)
        if operation == ScriptOperation.DELETE:
            if target.type not in ("Table", "View"):
                return None
            columns = self._columns(session_id, literal)
            if not columns:
                return None
            return f"DELETE FROM {qn}\nWHERE [{columns[0]['ColumnName']}] = <value>;\n"
        if operation == ScriptOperation.INSERT:
            if target.type not in ("Table", "View"):
                return None
            return self._script_insert(session_id, qn, literal)
        if operation == ScriptOperation.UPDATE:
            if target.type not in ("Table", "View"):
                return None
            return self._script_update(session_id, qn, literal)
        return None

    def _columns(self, session_id: str, literal: str) -> list[dict[str, Any]]:
        return self.execute_query(session_id, OBJECT_COLUMNS_QUERY.format(qualified=literal))

    def _parameters(self, session_id: str, literal: str) -> list[dict[str, Any]]:
        return self.execute_query(
            session_id, OBJECT_PARAMETERS_QUERY.format(qualified=literal)
        )

    def _definition(self, session_id: str, literal: str) -> str | None:
        rows = self.execute_query(
            session_id, OBJECT_DEFINITION_QUERY.format(qualified=literal)
        )
        return rows[0].get("Definition") if rows else None

    def _scalar(self, session_id: str, query: str, column: str) -> str | None:
        rows = self.execute_query(session_id, query)
        value = rows[0].get(column) if rows else None
        return str(value) if value is not None else None

    def _script_select(
        self, session_id: str, target: ScriptTarget, qn: str, literal: str
    ) -> str | None:
        if target.type in ("Table", "View"):
            columns = self._columns(session_id, literal)
            if not columns:
                return None
            column_list = "\n      ,".join(f"[{c['ColumnName']}]" for c in columns)
            return f"SELECT TOP ({_SELECT_ROW_LIMIT}) {column_list}\n  FROM {qn}\n"
        if target.type == "Synonym":
            return f"SELECT TOP ({_SELECT_ROW_LIMIT}) *\n  FROM {qn}\n"
        if target.type == "UserDefinedFunction":
            kind = self._scalar(
                session_id, OBJECT_KIND_QUERY.format(qualified=literal), "TypeCode"
            )
            args = ", ".join(
                f"NULL /* {p['ParameterName']} {p['TypeName']} */"
                for p in self._parameters(session_id, literal)
            )
            if kind == "FN":
                return f"SELECT {qn}({args})\n"
            return f"SELECT *\n  FROM {qn}({args})\n"
        return None

    def _script_create(
        self, session_id: str, target: ScriptTarget, qn: str, literal: str
    ) -> str | None:
        if target.type == "Table":
            columns = self._columns(session_id, literal)
            if not columns:
                return None
            lines = []
            for c in columns:
                line = f"\t[{c['ColumnName']}] {render_column_type(c)}"
                if c.get("IsIdentity"):
                    line += " IDENTITY(1,1)"
                line += " NULL" if c.get("IsNullable") else " NOT NULL"
                lines.append(line)
            body = ",\n".join(lines)
            return f"CREATE TABLE {qn}(\n{body}\n)\nGO\n"
        if target.type == "Synonym":
            base = self._scalar(
                session_id, SYNONYM_TARGET_QUERY.format(qualified=literal), "BaseObjectName"
            )
            return f"CREATE SYNONYM {qn} FOR {base}\nGO\n" if base else None
        definition = self._definition(session_id, literal)
        return f"{definition.strip()}\nGO\n" if definition else None

    def _script_execute(self, session_id: str, qn: str, literal: str) -> str:
        params = self._parameters(session_id, literal)
        if not params:
            return f"EXEC {qn};\n"
        assignments = ",\n".join(
            f"    {p['ParameterName']} = NULL{' OUTPUT' if p.get('IsOutput') else ''}"
            for p in params
        )
        return f"EXEC {qn}\n{assignments};\n"

    def _script_insert(self, session_id: str, qn: str, literal: str) -> str | None:
        columns = [c for c in self._columns(session_id, literal) if not c.get("IsIdentity")]
        if not columns:
            return None
        names = ", ".join(f"[{c['ColumnName']}]" for c in columns)
        values = ", ".join("NULL" for _ in columns)
        return f"INSERT INTO {qn}\n    ({names})\nVALUES\n    ({values});\n"

    def _script_update(self, session_id: str, qn: str, literal: str) -> str | None:
        columns = [c for c in self._columns(session_id, literal) if not c.get("IsIdentity")]
        if not columns:
            return None
        assignments = ",\n".join(f"    [{c['ColumnName']}] = NULL" for c in columns)
        return f"UPDATE {qn}\nSET\n{assignments}\nWHERE\n  -- Specify condition;\n"
