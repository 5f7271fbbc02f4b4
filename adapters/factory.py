from __future__ import annotations

from typing import Dict, Type

from adapters.base import DatabaseAdapter, UnsupportedEngineError
from adapters.descriptor import DataSourceDescriptor, DBType
from adapters.mongodb import MongoDBAdapter
from adapters.mysql import MySQLAdapter
from adapters.postgres import PostgresAdapter


ADAPTERS: Dict[DBType, Type[DatabaseAdapter]] = {
    DBType.POSTGRESQL: PostgresAdapter,
    DBType.MYSQL: MySQLAdapter,
    DBType.MONGODB: MongoDBAdapter,
}


def register_adapter(db_type: DBType, adapter_cls: Type[DatabaseAdapter]) -> None:
    ADAPTERS[DBType.parse(db_type)] = adapter_cls


def get_adapter(descriptor: DataSourceDescriptor) -> DatabaseAdapter:
    adapter_cls = ADAPTERS.get(descriptor.db_type)
    if adapter_cls is None:
        raise UnsupportedEngineError(f"Unsupported database type: {descriptor.db_type.value}")
    return adapter_cls(descriptor)
