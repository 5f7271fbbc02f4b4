from __future__ import annotations

import ssl
from typing import Any, Dict, List, Optional, Sequence

import aiomysql

from adapters.base import DatabaseAdapter, QueryError
from adapters.results import ColumnInfo, FieldInfo, QueryResult, RelationalSchema, TableInfo


# Aliases keep the keys lower-case; MySQL 8 reports information_schema
# columns in upper case otherwise.
TABLES_SQL = """
    SELECT table_name AS table_name
    FROM information_schema.tables
    WHERE table_schema = %s
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT
        column_name AS column_name,
        data_type AS data_type,
        character_maximum_length AS character_maximum_length,
        is_nullable AS is_nullable,
        column_default AS column_default
    FROM information_schema.columns
    WHERE table_schema = %s
      AND table_name = %s
    ORDER BY ordinal_position
"""


class MySQLAdapter(DatabaseAdapter):
    engine = "mysql"
    label = "MySQL"

    def _db_params(self, timeout: Optional[float]) -> Dict[str, Any]:
        source = self.descriptor
        params: Dict[str, Any] = {
            "host": source.host,
            "port": source.resolved_port,
            "db": source.database,
            "user": source.username,
            "password": source.password or "",
        }
        if source.ssl:
            params["ssl"] = ssl.create_default_context()
        if timeout is not None:
            params["connect_timeout"] = timeout
        params.update(source.options)
        return {key: value for key, value in params.items() if value is not None}

    async def _connect(self, timeout: Optional[float]) -> aiomysql.Connection:
        return await aiomysql.connect(autocommit=True, **self._db_params(timeout))

    async def _close(self, conn: aiomysql.Connection) -> None:
        conn.close()

    async def probe(self, conn: aiomysql.Connection) -> Dict[str, Any]:
        async with conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute("SELECT NOW() AS time")
            row = await cur.fetchone()
        return {"timestamp": row["time"] if row else None, "database_type": self.label}

    async def run_query(
        self,
        conn: aiomysql.Connection,
        query: Any,
        params: Optional[Sequence[Any]],
    ) -> QueryResult:
        if not isinstance(query, str):
            raise QueryError(f"{self.label} queries must be SQL text, got {type(query).__name__}")
        async with conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(query, tuple(params) if params else None)
            if not cur.description:
                return QueryResult(rows=[], row_count=max(cur.rowcount, 0), fields=[])
            rows = await cur.fetchall()
            # PyMySQL descriptions are DB-API 7-tuples: (name, type_code, ...).
            fields = [FieldInfo(name=column[0], type=column[1]) for column in cur.description]
        return QueryResult(rows=[dict(row) for row in rows], row_count=len(rows), fields=fields)

    async def introspect(self, conn: aiomysql.Connection) -> RelationalSchema:
        database = self.descriptor.database
        tables: List[TableInfo] = []
        async with conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(TABLES_SQL, (database,))
            table_names = [row["table_name"] for row in await cur.fetchall()]

            for table_name in table_names:
                await cur.execute(COLUMNS_SQL, (database, table_name))
                columns = [
                    ColumnInfo(
                        name=row["column_name"],
                        type=row["data_type"],
                        length=row["character_maximum_length"],
                        nullable=str(row["is_nullable"]).upper() == "YES",
                        default=row["column_default"],
                    )
                    for row in await cur.fetchall()
                ]
                tables.append(TableInfo(name=table_name, columns=columns))

        return RelationalSchema(database=database, schema=None, tables=tables)
