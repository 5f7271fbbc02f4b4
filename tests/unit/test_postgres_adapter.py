import asyncio
from types import SimpleNamespace

import pytest

from adapters.base import QueryError, SchemaError
from adapters.descriptor import DataSourceDescriptor, DBType
from adapters.postgres import PostgresAdapter


class FakeCursor:
    def __init__(self, responses):
        self.responses = list(responses)
        self.executed = []
        self.description = None
        self.rowcount = -1
        self._rows = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def execute(self, sql, params=None):
        self.executed.append((sql, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        columns, rows, rowcount = response
        self.description = [SimpleNamespace(name=name, type_code=oid) for name, oid in columns] if columns else None
        self._rows = rows
        self.rowcount = rowcount

    async def fetchall(self):
        return list(self._rows)

    async def fetchone(self):
        return self._rows[0] if self._rows else None


class FakeConn:
    def __init__(self, responses):
        self.cursor_obj = FakeCursor(responses)
        self.closed = False

    def cursor(self):
        return self.cursor_obj

    async def close(self):
        self.closed = True


def _descriptor(**overrides):
    values = {
        "db_type": DBType.POSTGRESQL,
        "host": "db.internal",
        "database": "analytics",
        "username": "reporter",
        "password": "s3cret",
    }
    values.update(overrides)
    return DataSourceDescriptor(**values)


def _adapter_with(monkeypatch, responses, **overrides):
    conn = FakeConn(responses)

    async def fake_connect(self, timeout):
        return conn

    monkeypatch.setattr(PostgresAdapter, "_connect", fake_connect)
    return PostgresAdapter(_descriptor(**overrides)), conn


def test_connect_params_use_descriptor_and_timeout(monkeypatch):
    captured = {}

    async def fake_connect(**kwargs):
        captured.update(kwargs)
        return FakeConn([])

    monkeypatch.setattr("adapters.postgres.psycopg.AsyncConnection.connect", fake_connect)
    adapter = PostgresAdapter(_descriptor(ssl=True, options={"application_name": "gateway"}))
    asyncio.run(adapter._connect(2.4))

    assert captured["host"] == "db.internal"
    assert captured["port"] == 5432
    assert captured["dbname"] == "analytics"
    assert captured["user"] == "reporter"
    assert captured["sslmode"] == "require"
    assert captured["connect_timeout"] == 2
    assert captured["autocommit"] is True
    assert captured["application_name"] == "gateway"


def test_connection_check_reports_server_time(monkeypatch):
    adapter, conn = _adapter_with(monkeypatch, [([("time", 1184)], [{"time": "2026-10-19T10:00:00"}], 1)])
    result = asyncio.run(adapter.test_connection())

    assert result.success is True
    assert result.message == "Connection successful"
    assert result.data == {"timestamp": "2026-10-19T10:00:00", "database_type": "PostgreSQL"}
    assert conn.closed is True


def test_connection_failure_is_returned_not_raised(monkeypatch):
    async def refuse(self, timeout):
        raise OSError("could not connect to server: Connection refused")

    monkeypatch.setattr(PostgresAdapter, "_connect", refuse)
    result = asyncio.run(PostgresAdapter(_descriptor()).test_connection())

    assert result.success is False
    assert "Connection refused" in result.message
    assert result.data is None


def test_execute_query_binds_params_and_reports_type_oids(monkeypatch):
    rows = [{"id": 1, "name": "alpha"}]
    adapter, conn = _adapter_with(monkeypatch, [([("id", 23), ("name", 1043)], rows, 1)])
    payload = "'; DROP TABLE x; --"

    result = asyncio.run(adapter.execute_query("SELECT id, name FROM items WHERE name = %s", [payload]))

    sql, params = conn.cursor_obj.executed[0]
    assert payload not in sql
    assert params == [payload]
    assert result.rows == rows
    assert result.row_count == 1
    assert [(f.name, f.type) for f in result.fields] == [("id", 23), ("name", 1043)]
    assert conn.closed is True


def test_execute_query_without_result_set_returns_affected_rows(monkeypatch):
    adapter, _conn = _adapter_with(monkeypatch, [(None, [], 3)])
    result = asyncio.run(adapter.execute_query("UPDATE items SET seen = true"))

    assert result.rows == []
    assert result.fields == []
    assert result.row_count == 3


def test_execute_query_wraps_engine_error_and_closes(monkeypatch):
    adapter, conn = _adapter_with(monkeypatch, [RuntimeError('syntax error at or near "SELEC"')])

    with pytest.raises(QueryError, match="syntax error"):
        asyncio.run(adapter.execute_query("SELEC 1"))
    assert conn.closed is True


def test_execute_query_rejects_structured_query(monkeypatch):
    adapter, conn = _adapter_with(monkeypatch, [])

    with pytest.raises(QueryError, match="must be SQL text"):
        asyncio.run(adapter.execute_query({"collection": "items", "operation": "find"}))
    assert conn.closed is True


def test_close_failure_does_not_mask_query_error(monkeypatch):
    adapter, conn = _adapter_with(monkeypatch, [RuntimeError("relation \"missing\" does not exist")])

    async def broken_close(self, conn):
        raise RuntimeError("connection already closed")

    monkeypatch.setattr(PostgresAdapter, "_close", broken_close)
    with pytest.raises(QueryError, match="does not exist"):
        asyncio.run(adapter.execute_query("SELECT * FROM missing"))


def test_query_timeout_raises_query_error(monkeypatch):
    adapter, _conn = _adapter_with(monkeypatch, [])

    async def slow_query(self, conn, query, params):
        await asyncio.sleep(5)

    monkeypatch.setattr(PostgresAdapter, "run_query", slow_query)
    with pytest.raises(QueryError, match="timed out"):
        asyncio.run(adapter.execute_query("SELECT pg_sleep(5)", timeout=0.05))


def test_introspect_orders_tables_and_maps_columns(monkeypatch):
    responses = [
        ([("table_name", 19)], [{"table_name": "customers"}, {"table_name": "orders"}], 2),
        (
            [("column_name", 19)],
            [
                {"column_name": "id", "data_type": "integer", "character_maximum_length": None, "is_nullable": "NO", "column_default": None},
                {"column_name": "name", "data_type": "character varying", "character_maximum_length": 50, "is_nullable": "YES", "column_default": None},
            ],
            2,
        ),
        (
            [("column_name", 19)],
            [
                {
                    "column_name": "order_id",
                    "data_type": "bigint",
                    "character_maximum_length": None,
                    "is_nullable": "NO",
                    "column_default": "nextval('orders_order_id_seq'::regclass)",
                },
            ],
            1,
        ),
    ]
    adapter, conn = _adapter_with(monkeypatch, responses)
    schema = asyncio.run(adapter.introspect_schema())

    assert [t.name for t in schema.tables] == ["customers", "orders"]
    customers = schema.tables[0].to_dict()
    assert customers["columns"] == [
        {"name": "id", "type": "integer", "length": None, "nullable": False, "default": None},
        {"name": "name", "type": "character varying", "length": 50, "nullable": True, "default": None},
    ]
    assert schema.tables[1].columns[0].default.startswith("nextval")
    assert conn.cursor_obj.executed[0][1] == ("public",)
    assert conn.cursor_obj.executed[1][1] == ("public", "customers")
    assert schema.to_dict()["schema"] == "public"
    assert conn.closed is True


def test_introspect_empty_schema_returns_no_tables(monkeypatch):
    adapter, _conn = _adapter_with(monkeypatch, [([("table_name", 19)], [], 0)], schema="reporting")
    schema = asyncio.run(adapter.introspect_schema())

    assert schema.to_dict() == {"database": "analytics", "schema": "reporting", "tables": []}


def test_introspect_failure_raises_schema_error(monkeypatch):
    adapter, conn = _adapter_with(monkeypatch, [RuntimeError("permission denied for schema private")])

    with pytest.raises(SchemaError, match="permission denied"):
        asyncio.run(adapter.introspect_schema())
    assert conn.closed is True
