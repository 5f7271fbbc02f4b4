from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from adapters.base import SchemaInfo, UnsupportedEngineError
from adapters.descriptor import DataSourceDescriptor
from adapters.factory import get_adapter
from adapters.results import ConnectionResult, QueryResult


logger = logging.getLogger(__name__)

SourceLike = Union[DataSourceDescriptor, Mapping[str, Any]]


def _as_descriptor(source: SourceLike) -> DataSourceDescriptor:
    if isinstance(source, DataSourceDescriptor):
        return source
    return DataSourceDescriptor.from_record(source)


async def test_connection(config: SourceLike) -> ConnectionResult:
    """Open, probe and close one connection; always returns a result."""
    try:
        descriptor = _as_descriptor(config)
        adapter = get_adapter(descriptor)
    except (UnsupportedEngineError, ValueError, TypeError) as exc:
        logger.info("Connection test rejected: %s", exc)
        return ConnectionResult.failure(str(exc))

    logger.info("Testing %s connection to %s", descriptor.db_type.value, descriptor.safe_label())
    return await adapter.test_connection()


# Not a pytest test despite the name.
test_connection.__test__ = False  # type: ignore[attr-defined]


async def execute_query(
    data_source: SourceLike,
    query: Any,
    params: Optional[Sequence[Any]] = None,
    timeout: Optional[float] = None,
) -> QueryResult:
    descriptor = _as_descriptor(data_source)
    adapter = get_adapter(descriptor)
    logger.debug("Executing %s query on %s", descriptor.db_type.value, descriptor.safe_label())
    try:
        result = await adapter.execute_query(query, params=params, timeout=timeout)
    except Exception as exc:
        logger.error("Query execution error for %s on %s: %s", descriptor.db_type.value, descriptor.safe_label(), exc)
        raise
    logger.debug("Query on %s returned %d rows", descriptor.safe_label(), result.row_count)
    return result


async def get_schema_info(data_source: SourceLike, timeout: Optional[float] = None) -> SchemaInfo:
    descriptor = _as_descriptor(data_source)
    adapter = get_adapter(descriptor)
    logger.info("Introspecting schema of %s", descriptor.safe_label())
    try:
        return await adapter.introspect_schema(timeout=timeout)
    except Exception as exc:
        logger.error("Schema info error for %s on %s: %s", descriptor.db_type.value, descriptor.safe_label(), exc)
        raise
