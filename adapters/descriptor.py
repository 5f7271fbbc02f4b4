from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from adapters.base import UnsupportedEngineError


class DBType(str, Enum):
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MONGODB = "mongodb"
    SNOWFLAKE = "snowflake"
    BIGQUERY = "bigquery"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"
    REDSHIFT = "redshift"
    DYNAMODB = "dynamodb"
    ELASTICSEARCH = "elasticsearch"

    @classmethod
    def parse(cls, value: Any) -> "DBType":
        if isinstance(value, cls):
            return value
        engine = str(value or "").strip().lower()
        if engine == "postgres":
            engine = cls.POSTGRESQL.value
        try:
            return cls(engine)
        except ValueError as exc:
            raise UnsupportedEngineError(f"Unsupported database type: {engine or '<empty>'}") from exc


DEFAULT_PORTS = {
    DBType.POSTGRESQL: 5432,
    DBType.MYSQL: 3306,
    DBType.MONGODB: 27017,
}


TRUE_STRINGS = {"1", "true", "yes", "on", "require", "required"}
FALSE_STRINGS = {"", "0", "false", "no", "off", "disable", "disabled"}


def _as_bool(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
        raise ValueError(f"{name} must be a boolean, got: {value!r}")
    return bool(value)


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


@dataclass(frozen=True)
class DataSourceDescriptor:
    """Connection parameters for one external database.

    The password is kept out of ``repr`` so descriptors can appear in
    tracebacks and debug output without leaking credentials. Use
    ``safe_label`` whenever a descriptor has to be logged.
    """

    db_type: DBType
    host: str
    database: str
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    schema: Optional[str] = None
    ssl: bool = False
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DataSourceDescriptor":
        db_type = DBType.parse(_first(record, "db_type", "type"))
        host = _first(record, "host")
        database = _first(record, "database", "dbname")
        if not host:
            raise ValueError("host is required")
        if not database:
            raise ValueError("database is required")
        port_raw = _first(record, "port")
        options = _first(record, "options", "connectionOptions", "connection_options") or {}
        if not isinstance(options, Mapping):
            raise ValueError("connection options must be an object")
        return cls(
            db_type=db_type,
            host=str(host),
            database=str(database),
            port=int(port_raw) if port_raw is not None else None,
            username=_first(record, "username", "user"),
            password=_first(record, "password"),
            schema=_first(record, "schema", "schema_name"),
            ssl=_as_bool(record.get("ssl"), "ssl"),
            options=dict(options),
        )

    @property
    def resolved_port(self) -> Optional[int]:
        return self.port or DEFAULT_PORTS.get(self.db_type)

    def safe_label(self) -> str:
        port = self.resolved_port
        location = f"{self.host}:{port}" if port else self.host
        return f"{self.db_type.value}://{location}/{self.database}"
