"""Connection context: active session resolution and session reuse.

The ConnectionContext sits between the search/scripting services and a
ConnectionProvider (the backend). It memoizes the primary session for the
current (connection identity, active database) pair and keeps one scripting
session per database, so repeated searches do not reconnect.

Provider failures never cross this boundary as exceptions for session
resolution and scripting: callers observe `None` and the detail is logged.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlfind.core.errors import NO_CONNECTION_MESSAGE
from sqlfind.core.objects import DatabaseObject, ObjectType, ScriptOperation, ScriptTarget
from sqlfind.core.queries import use_database

logger = logging.getLogger(__name__)

_bind_clock = itertools.count(1)


class NoConnectionError(RuntimeError):
    """Raised when a query is issued without any active session."""


class ConnectionProvider(Protocol):
    """Interface for the backend connection/session operations used by the core."""

    def active_connection_identity(self) -> str | None:
        """Return the identity of the active logical connection, if any."""
        ...

    def active_database(self) -> str | None:
        """Return the name of the active database, if any."""
        ...

    def connect(self, identity: str, database: str | None = None) -> str | None:
        """Open a session for the connection and return its session id."""
        ...

    def execute_query(self, session_id: str, sql: str) -> list[dict[str, Any]]:
        """Run a query batch and return its rows as dictionaries."""
        ...

    def script_object(
        self, session_id: str, operation: ScriptOperation, target: ScriptTarget
    ) -> str | None:
        """Generate a script for an object, or None if none can be produced."""
        ...

    def disconnect(self, session_id: str) -> None:
        """Close a session opened by connect(); unknown ids are ignored."""
        ...


@dataclass(frozen=True)
class SessionBinding:
    """A backend session bound to a connection identity and database."""

    session_id: str
    identity: str
    database: str | None
    bound_at: int


def scripting_type(object_type: ObjectType) -> str:
    """Map an ObjectType to the type name understood by the scripting backend."""
    if object_type.is_function:
        return "UserDefinedFunction"
    return object_type.value


class ConnectionContext:
    """Resolves and caches backend sessions for the active connection."""

    def __init__(self, provider: ConnectionProvider) -> None:
        self.provider = provider
        self._binding: SessionBinding | None = None
        self._scripting_sessions: dict[str, str] = {}

    @property
    def binding(self) -> SessionBinding | None:
        return self._binding

    def resolve_active_session(self) -> str | None:
        """
        Return the session id for the active connection and database.

        A cached session is reused while neither the connection identity nor
        the active database changes; otherwise a new session is established.
        Returns None when no connection is active or the backend fails.
        """
        try:
            identity = self.provider.active_connection_identity()
            if not identity:
                logger.debug("No active connection")
                self._drop_binding()
                return None

            database = self.provider.active_database()
            cached = self._binding
            if cached and cached.identity == identity and cached.database == database:
                logger.debug("Reusing cached session %s", cached.session_id)
                return cached.session_id
            self._drop_binding()

            logger.debug(
                "Active connection: %s, database: %s", identity, database or "default"
            )
            session_id = self.provider.connect(identity)
            if not session_id:
                self._binding = None
                return None

            self._binding = SessionBinding(
                session_id=session_id,
                identity=identity,
                database=database,
                bound_at=next(_bind_clock),
            )
            logger.info("Connection established and cached: %s", session_id)
            return session_id
        except Exception:  # noqa: BLE001
            logger.exception("Could not resolve active session")
            self._drop_binding()
            return None

    def active_database(self) -> str | None:
        """Return the active database name, or None if unknown or on failure."""
        try:
            return self.provider.active_database()
        except Exception:  # noqa: BLE001
            logger.exception("Could not get active database")
            return None

    def resolve_scripting_session(self, database: str) -> str | None:
        """
        Return a session bound to a specific database for scripting.

        Sessions are memoized per database and only dropped by invalidate_all().
        """
        cached = self._scripting_sessions.get(database)
        if cached:
            return cached

        try:
            if not self.resolve_active_session():
                return None
            identity = self.provider.active_connection_identity()
            if not identity:
                return None
            session_id = self.provider.connect(identity, database)
        except Exception:  # noqa: BLE001
            logger.exception("Could not open scripting session for %r", database)
            return None

        if not session_id:
            return None
        self._scripting_sessions[database] = session_id
        logger.info("Scripting session for %r: %s", database, session_id)
        return session_id

    def invalidate_all(self) -> None:
        """Close and drop the primary session binding and every scripting session."""
        self._drop_binding()
        for session_id in self._scripting_sessions.values():
            self._release(session_id)
        self._scripting_sessions.clear()
        logger.debug("Connection cache cleared")

    def _drop_binding(self) -> None:
        if self._binding is not None:
            self._release(self._binding.session_id)
        self._binding = None

    def _release(self, session_id: str) -> None:
        try:
            self.provider.disconnect(session_id)
        except Exception:  # noqa: BLE001
            logger.exception("Could not close session %s", session_id)

    def execute_query(self, sql: str, database: str | None = None) -> list[dict[str, Any]]:
        """
        Execute a query on the active session.

        The batch is prefixed with `USE [database];` when a database is given
        or active. Backend errors propagate to the caller.

        Raises:
            NoConnectionError: If there is no active session.
        """
        session_id = self.resolve_active_session()
        if not session_id:
            raise NoConnectionError(NO_CONNECTION_MESSAGE)

        effective = database or self.active_database()
        if effective:
            sql = use_database(effective, sql)
            logger.debug("Executing query against database: %s", effective)
        else:
            logger.warning("No database specified, query may execute against master")

        return self.provider.execute_query(session_id, sql) or []

    def script_object(self, operation: ScriptOperation, obj: DatabaseObject) -> str | None:
        """
        Script an object through a session bound to the active database.

        Returns None (and logs) on any failure or when nothing was produced.
        """
        try:
            database = obj.database or self.active_database()
            session_id = (
                self.resolve_scripting_session(database)
                if database
                else self.resolve_active_session()
            )
            if not session_id:
                logger.error("No scripting connection available")
                return None

            target = ScriptTarget(
                type=scripting_type(obj.type), schema=obj.schema, name=obj.name
            )
            logger.info(
                "scriptObject: session=%s, op=%s, type=%s->%s, obj=%s",
                session_id,
                operation.name,
                obj.type.value,
                target.type,
                obj.qualified_name,
            )
            script = self.provider.script_object(session_id, operation, target)
        except Exception:  # noqa: BLE001
            logger.exception("scriptObject ERROR: %s op=%s", obj.key, operation.name)
            return None

        if script:
            logger.info(
                "scriptObject SUCCESS: %s op=%s, length=%d",
                obj.key,
                operation.name,
                len(script),
            )
        else:
            logger.warning("scriptObject UNDEFINED: %s op=%s", obj.key, operation.name)
        return script or None
