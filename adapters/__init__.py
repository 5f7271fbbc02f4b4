"""Engine adapters for connection tests, query execution and schema introspection."""

from adapters.base import (
    AdapterError,
    DataSourceConnectionError,
    QueryError,
    SchemaError,
    UnsupportedEngineError,
)
from adapters.descriptor import DataSourceDescriptor, DBType
from adapters.factory import get_adapter, register_adapter

__all__ = [
    "AdapterError",
    "DBType",
    "DataSourceConnectionError",
    "DataSourceDescriptor",
    "QueryError",
    "SchemaError",
    "UnsupportedEngineError",
    "get_adapter",
    "register_adapter",
]
