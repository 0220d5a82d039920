import pytest

from sqlfind.core.connection import ConnectionContext, NoConnectionError, scripting_type
from sqlfind.core.objects import DatabaseObject, ObjectType, ScriptOperation


class _Provider:
    def __init__(self, identity="prod@db:1433", database="Shop"):
        self.identity = identity
        self.database = database
        self.connects: list[tuple[str, str | None]] = []
        self.queries: list[tuple[str, str]] = []
        self.scripted: list[tuple[str, ScriptOperation, object]] = []
        self.script_result: str | None = "SELECT 1"
        self.fail_connect = False
        self.disconnected: list[str] = []

    def active_connection_identity(self):
        return self.identity

    def active_database(self):
        return self.database

    def connect(self, identity, database=None):
        if self.fail_connect:
            raise RuntimeError("login failed")
        self.connects.append((identity, database))
        return f"session-{len(self.connects)}"

    def execute_query(self, session_id, sql):
        self.queries.append((session_id, sql))
        return [{"ok": 1}]

    def script_object(self, session_id, operation, target):
        self.scripted.append((session_id, operation, target))
        return self.script_result

    def disconnect(self, session_id):
        self.disconnected.append(session_id)


def test_resolve_active_session_reuses_binding():
    provider = _Provider()
    ctx = ConnectionContext(provider)

    first = ctx.resolve_active_session()
    second = ctx.resolve_active_session()

    assert first == second == "session-1"
    assert provider.connects == [("prod@db:1433", None)]
    assert ctx.binding.identity == "prod@db:1433"
    assert ctx.binding.database == "Shop"


@pytest.mark.parametrize(
    ("attr", "value"),
    [("identity", "staging@db:1433"), ("database", "Hr")],
)
def test_resolve_active_session_reconnects_on_change(attr: str, value: str):
    provider = _Provider()
    ctx = ConnectionContext(provider)
    ctx.resolve_active_session()

    setattr(provider, attr, value)

    assert ctx.resolve_active_session() == "session-2"
    assert len(provider.connects) == 2
    assert provider.disconnected == ["session-1"]


def test_resolve_active_session_without_connection_returns_none():
    provider = _Provider(identity=None)
    ctx = ConnectionContext(provider)

    assert ctx.resolve_active_session() is None
    assert provider.connects == []


def test_resolve_active_session_swallows_backend_errors():
    provider = _Provider()
    provider.fail_connect = True
    ctx = ConnectionContext(provider)

    assert ctx.resolve_active_session() is None
    assert ctx.binding is None


def test_scripting_sessions_are_memoized_per_database():
    provider = _Provider()
    ctx = ConnectionContext(provider)

    assert ctx.resolve_scripting_session("Shop") == "session-2"
    assert ctx.resolve_scripting_session("Shop") == "session-2"
    assert ctx.resolve_scripting_session("Hr") == "session-3"
    assert provider.connects[1:] == [("prod@db:1433", "Shop"), ("prod@db:1433", "Hr")]


def test_invalidate_all_drops_every_session():
    provider = _Provider()
    ctx = ConnectionContext(provider)
    ctx.resolve_active_session()
    ctx.resolve_scripting_session("Shop")

    ctx.invalidate_all()

    assert ctx.binding is None
    assert ctx.resolve_scripting_session("Shop") == "session-4"


def test_invalidate_all_closes_every_session():
    provider = _Provider()
    ctx = ConnectionContext(provider)
    ctx.resolve_active_session()
    ctx.resolve_scripting_session("Shop")
    ctx.resolve_scripting_session("Hr")

    ctx.invalidate_all()

    assert sorted(provider.disconnected) == ["session-1", "session-2", "session-3"]


def test_losing_the_connection_closes_the_bound_session():
    provider = _Provider()
    ctx = ConnectionContext(provider)
    ctx.resolve_active_session()

    provider.identity = None

    assert ctx.resolve_active_session() is None
    assert provider.disconnected == ["session-1"]


def test_execute_query_prefixes_use_statement():
    provider = _Provider()
    ctx = ConnectionContext(provider)

    ctx.execute_query("SELECT 1;")
    ctx.execute_query("SELECT 2;", "Hr")

    assert provider.queries == [
        ("session-1", "USE [Shop];\nSELECT 1;"),
        ("session-1", "USE [Hr];\nSELECT 2;"),
    ]


def test_execute_query_without_database_runs_raw_sql():
    provider = _Provider(database=None)
    ctx = ConnectionContext(provider)

    ctx.execute_query("SELECT 1;")

    assert provider.queries == [("session-1", "SELECT 1;")]


def test_execute_query_without_session_raises():
    ctx = ConnectionContext(_Provider(identity=None))

    with pytest.raises(NoConnectionError):
        ctx.execute_query("SELECT 1;")


def test_script_object_uses_database_bound_session():
    provider = _Provider()
    ctx = ConnectionContext(provider)
    obj = DatabaseObject(
        name="fn_Total", schema="dbo", type=ObjectType.SCALAR_FUNCTION, database="Hr"
    )

    assert ctx.script_object(ScriptOperation.SELECT, obj) == "SELECT 1"

    session_id, operation, target = provider.scripted[0]
    assert session_id == "session-2"
    assert provider.connects[-1] == ("prod@db:1433", "Hr")
    assert operation is ScriptOperation.SELECT
    assert target.type == "UserDefinedFunction"
    assert (target.schema, target.name) == ("dbo", "fn_Total")


def test_script_object_turns_empty_and_errors_into_none():
    provider = _Provider()
    ctx = ConnectionContext(provider)
    obj = DatabaseObject(name="Orders", schema="dbo", type=ObjectType.TABLE)

    provider.script_result = ""
    assert ctx.script_object(ScriptOperation.CREATE, obj) is None

    provider.fail_connect = True
    ctx.invalidate_all()
    assert ctx.script_object(ScriptOperation.CREATE, obj) is None


def test_scripting_type_maps_functions():
    assert scripting_type(ObjectType.TABLE_VALUED_FUNCTION) == "UserDefinedFunction"
    assert scripting_type(ObjectType.STORED_PROCEDURE) == "StoredProcedure"
