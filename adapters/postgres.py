from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import psycopg
from psycopg.rows import dict_row

from adapters.base import DatabaseAdapter, QueryError
from adapters.results import ColumnInfo, FieldInfo, QueryResult, RelationalSchema, TableInfo


DEFAULT_SCHEMA = "public"

TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT
        column_name,
        data_type,
        character_maximum_length,
        is_nullable,
        column_default
    FROM information_schema.columns
    WHERE table_schema = %s
      AND table_name = %s
    ORDER BY ordinal_position
"""


class PostgresAdapter(DatabaseAdapter):
    engine = "postgresql"
    label = "PostgreSQL"

    def _db_params(self, timeout: Optional[float]) -> Dict[str, Any]:
        source = self.descriptor
        params: Dict[str, Any] = {
            "host": source.host,
            "port": source.resolved_port,
            "dbname": source.database,
            "user": source.username,
            "password": source.password,
            "sslmode": "require" if source.ssl else "prefer",
        }
        if timeout is not None:
            # libpq only accepts whole seconds and treats 0 as "wait forever".
            params["connect_timeout"] = max(1, int(round(timeout)))
        params.update(source.options)
        return {key: value for key, value in params.items() if value is not None}

    async def _connect(self, timeout: Optional[float]) -> psycopg.AsyncConnection:
        return await psycopg.AsyncConnection.connect(
            autocommit=True,
            row_factory=dict_row,
            **self._db_params(timeout),
        )

    async def _close(self, conn: psycopg.AsyncConnection) -> None:
        await conn.close()

    async def probe(self, conn: psycopg.AsyncConnection) -> Dict[str, Any]:
        async with conn.cursor() as cur:
            await cur.execute("SELECT NOW() AS time")
            row = await cur.fetchone()
        return {"timestamp": row["time"] if row else None, "database_type": self.label}

    async def run_query(
        self,
        conn: psycopg.AsyncConnection,
        query: Any,
        params: Optional[Sequence[Any]],
    ) -> QueryResult:
        if not isinstance(query, str):
            raise QueryError(f"{self.label} queries must be SQL text, got {type(query).__name__}")
        async with conn.cursor() as cur:
            await cur.execute(query, list(params) if params else None)
            if cur.description is None:
                return QueryResult(rows=[], row_count=max(cur.rowcount, 0), fields=[])
            rows = await cur.fetchall()
            fields = [FieldInfo(name=column.name, type=column.type_code) for column in cur.description]
        return QueryResult(rows=[dict(row) for row in rows], row_count=len(rows), fields=fields)

    async def introspect(self, conn: psycopg.AsyncConnection) -> RelationalSchema:
        schema_name = self.descriptor.schema or DEFAULT_SCHEMA
        tables: List[TableInfo] = []
        async with conn.cursor() as cur:
            await cur.execute(TABLES_SQL, (schema_name,))
            table_names = [row["table_name"] for row in await cur.fetchall()]

            for table_name in table_names:
                await cur.execute(COLUMNS_SQL, (schema_name, table_name))
                columns = [
                    ColumnInfo(
                        name=row["column_name"],
                        type=row["data_type"],
                        length=row["character_maximum_length"],
                        nullable=row["is_nullable"] == "YES",
                        default=row["column_default"],
                    )
                    for row in await cur.fetchall()
                ]
                tables.append(TableInfo(name=table_name, columns=columns))

        return RelationalSchema(database=self.descriptor.database, schema=schema_name, tables=tables)
