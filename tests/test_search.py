import threading

import pytest

from sqlfind.core.catalog import ObjectCatalogCache
from sqlfind.core.columns import ColumnMetadataCache
from sqlfind.core.config import SearchSettings
from sqlfind.core.connection import ConnectionContext
from sqlfind.core.errors import NO_CONNECTION_MESSAGE
from sqlfind.core.objects import DatabaseObject, ObjectType
from sqlfind.core.queries import ALL_OBJECTS_QUERY, COLUMNS_QUERY
from sqlfind.core.search import SearchOrchestrator, filter_objects

_CATALOG = [
    {"SchemaName": "dbo", "ObjectName": "Customers", "ObjectType": "TABLE"},
    {"SchemaName": "dbo", "ObjectName": "Orders", "ObjectType": "TABLE"},
    {"SchemaName": "sales", "ObjectName": "CustomerNotes", "ObjectType": "VIEW"},
    {"SchemaName": "dbo", "ObjectName": "usp_Report", "ObjectType": "SQL_STORED_PROCEDURE"},
]

_COLUMNS = [
    {"SchemaName": "dbo", "ObjectName": "Customers", "Columns": "Id, Name"},
]


class _Provider:
    def __init__(self, identity="prod@db:1433"):
        self.identity = identity
        self.catalog_calls = 0
        self.column_calls = 0
        self.fail_catalog = False

    def active_connection_identity(self):
        return self.identity

    def active_database(self):
        return "Shop"

    def connect(self, identity, database=None):
        return "session-1"

    def execute_query(self, session_id, sql):
        if ALL_OBJECTS_QUERY in sql:
            self.catalog_calls += 1
            if self.fail_catalog:
                raise RuntimeError("deadlock victim")
            return _CATALOG
        if COLUMNS_QUERY in sql:
            self.column_calls += 1
            return _COLUMNS
        raise AssertionError(f"unexpected query: {sql}")

    def script_object(self, session_id, operation, target):
        return None

    def disconnect(self, session_id):
        return None


class _Notifier:
    def __init__(self):
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    def error(self, msg: str) -> None:
        self.errors.append(msg)


def _orchestrator(provider=None, *, columns=False):
    provider = provider or _Provider()
    notifier = _Notifier()
    orchestrator = SearchOrchestrator(
        ConnectionContext(provider),
        ObjectCatalogCache(),
        ColumnMetadataCache(),
        SearchSettings(include_table_columns=columns),
        notifier=notifier,
    )
    return orchestrator, provider, notifier


def test_filter_objects_matches_name_or_schema_case_insensitively():
    objects = (
        DatabaseObject(name="Orders", schema="sales", type=ObjectType.TABLE),
        DatabaseObject(name="Customers", schema="dbo", type=ObjectType.TABLE),
    )

    assert filter_objects(objects, "SALES") == objects[:1]
    assert filter_objects(objects, "tomer") == objects[1:]
    assert filter_objects(objects, "  ") == objects


def test_search_returns_matches_in_catalog_order():
    orchestrator, _, _ = _orchestrator()

    result = orchestrator.search("cust")

    assert [(o.schema, o.name) for o in result] == [
        ("dbo", "Customers"),
        ("sales", "CustomerNotes"),
    ]
    assert all(o.database == "Shop" for o in result)


def test_search_reuses_cached_catalog():
    orchestrator, provider, _ = _orchestrator()

    orchestrator.search("cust")
    everything = orchestrator.search("")

    assert provider.catalog_calls == 1
    assert len(everything) == 4


def test_search_force_refresh_refetches():
    orchestrator, provider, _ = _orchestrator(columns=True)

    orchestrator.search("cust")
    orchestrator.search("cust", force_refresh=True)

    assert provider.catalog_calls == 2
    assert provider.column_calls == 2


def test_search_enriches_columns_when_enabled():
    orchestrator, provider, _ = _orchestrator(columns=True)

    result = orchestrator.search("cust")
    orchestrator.search("orders")

    assert result[0].columns == "Id, Name"
    assert result[1].columns is None
    assert provider.column_calls == 1


def test_search_skips_column_fetch_without_tables():
    orchestrator, provider, _ = _orchestrator(columns=True)

    result = orchestrator.search("usp_")

    assert [o.name for o in result] == ["usp_Report"]
    assert provider.column_calls == 0


def test_search_without_connection_warns_and_returns_empty():
    orchestrator, provider, notifier = _orchestrator(_Provider(identity=None))

    assert orchestrator.search("cust") == ()
    assert notifier.warnings == [NO_CONNECTION_MESSAGE]
    assert provider.catalog_calls == 0


def test_search_reports_backend_errors():
    provider = _Provider()
    provider.fail_catalog = True
    orchestrator, _, notifier = _orchestrator(provider)

    assert orchestrator.search("cust") == ()
    assert len(notifier.errors) == 1
    assert notifier.errors[0].startswith("Search failed")
    assert "deadlock victim" in notifier.errors[0]
    assert "Shop" not in orchestrator.catalog


def test_search_cancelled_returns_empty_and_caches_nothing():
    orchestrator, provider, notifier = _orchestrator()
    cancel = threading.Event()
    cancel.set()

    assert orchestrator.search("cust", cancel=cancel) == ()
    assert provider.catalog_calls == 0
    assert len(orchestrator.catalog) == 0
    assert notifier.errors == []


def test_refresh_clears_every_layer():
    orchestrator, provider, _ = _orchestrator(columns=True)
    orchestrator.search("cust")

    orchestrator.refresh()

    assert len(orchestrator.catalog) == 0
    assert "session-1" not in orchestrator.columns
    assert orchestrator.connection.binding is None
    orchestrator.search("cust")
    assert provider.catalog_calls == 2


@pytest.mark.parametrize("term", ["", "zzz"])
def test_search_never_returns_none(term: str):
    orchestrator, _, _ = _orchestrator()

    assert isinstance(orchestrator.search(term), tuple)
