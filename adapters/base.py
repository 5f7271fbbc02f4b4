from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Dict, Optional, Sequence, TypeVar, Union

from adapters.results import ConnectionResult, DocumentSchema, QueryResult, RelationalSchema
from utils.settings import connect_timeout_seconds, query_timeout_seconds

if TYPE_CHECKING:
    from adapters.descriptor import DataSourceDescriptor


logger = logging.getLogger(__name__)

T = TypeVar("T")
SchemaInfo = Union[RelationalSchema, DocumentSchema]


class AdapterError(RuntimeError):
    pass


class DataSourceConnectionError(AdapterError):
    """Transport, authentication or timeout failure while connecting."""


class QueryError(AdapterError):
    pass


class SchemaError(AdapterError):
    pass


class UnsupportedEngineError(AdapterError):
    pass


class ConnectionProbe(ABC):
    @abstractmethod
    async def probe(self, conn: Any) -> Dict[str, Any]:
        """Issue a trivial liveness statement and return what the engine reported."""
        raise NotImplementedError


class QueryRunner(ABC):
    @abstractmethod
    async def run_query(self, conn: Any, query: Any, params: Optional[Sequence[Any]]) -> QueryResult:
        raise NotImplementedError


class SchemaIntrospector(ABC):
    @abstractmethod
    async def introspect(self, conn: Any) -> SchemaInfo:
        raise NotImplementedError


def _timed_out(what: str, timeout: Optional[float]) -> str:
    if timeout is None:
        return f"{what} timed out"
    return f"{what} timed out after {timeout:g}s"


async def _bounded(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


class DatabaseAdapter(ConnectionProbe, QueryRunner, SchemaIntrospector):
    """One engine variant: connection lifecycle plus the three capabilities.

    Every public operation opens its own connection and closes it before
    returning. Nothing is pooled or cached between calls, so adapters are
    cheap to build per request and safe to use concurrently.
    """

    engine: str = "unknown"
    label: str = "Unknown"

    def __init__(self, descriptor: "DataSourceDescriptor"):
        self.descriptor = descriptor

    @abstractmethod
    async def _connect(self, timeout: Optional[float]) -> Any:
        raise NotImplementedError

    @abstractmethod
    async def _close(self, conn: Any) -> None:
        raise NotImplementedError

    @asynccontextmanager
    async def session(self, timeout: Optional[float] = None) -> AsyncIterator[Any]:
        try:
            conn = await _bounded(self._connect(timeout), timeout)
        except asyncio.TimeoutError as exc:
            raise DataSourceConnectionError(_timed_out("Connection", timeout)) from exc
        except DataSourceConnectionError:
            raise
        except Exception as exc:
            raise DataSourceConnectionError(str(exc) or type(exc).__name__) from exc
        try:
            yield conn
        finally:
            try:
                await self._close(conn)
            except Exception as exc:
                logger.warning("Failed to close %s connection to %s: %s", self.engine, self.descriptor.safe_label(), exc)

    async def test_connection(self) -> ConnectionResult:
        try:
            timeout = connect_timeout_seconds()
        except ValueError as exc:
            logger.warning("Connection test for %s not attempted: %s", self.descriptor.safe_label(), exc)
            return ConnectionResult.failure(f"Connection test failed: {exc}")
        try:
            async with self.session(timeout) as conn:
                data = await _bounded(self.probe(conn), timeout)
        except asyncio.TimeoutError:
            message = f"Connection test failed: {_timed_out('probe', timeout)}"
            logger.info("%s on %s", message, self.descriptor.safe_label())
            return ConnectionResult.failure(message)
        except Exception as exc:
            logger.info("Connection test failed for %s: %s", self.descriptor.safe_label(), exc)
            return ConnectionResult.failure(f"Connection test failed: {exc}")
        return ConnectionResult(success=True, message="Connection successful", data=data)

    async def execute_query(
        self,
        query: Any,
        params: Optional[Sequence[Any]] = None,
        timeout: Optional[float] = None,
    ) -> QueryResult:
        effective_timeout = timeout if timeout is not None else query_timeout_seconds()
        try:
            async with self.session(effective_timeout) as conn:
                return await _bounded(self.run_query(conn, query, params), effective_timeout)
        except QueryError:
            raise
        except asyncio.TimeoutError as exc:
            raise QueryError(_timed_out("Query", effective_timeout)) from exc
        except Exception as exc:
            raise QueryError(str(exc) or type(exc).__name__) from exc

    async def introspect_schema(self, timeout: Optional[float] = None) -> SchemaInfo:
        effective_timeout = timeout if timeout is not None else query_timeout_seconds()
        try:
            async with self.session(effective_timeout) as conn:
                return await _bounded(self.introspect(conn), effective_timeout)
        except SchemaError:
            raise
        except asyncio.TimeoutError as exc:
            raise SchemaError(_timed_out("Schema introspection", effective_timeout)) from exc
        except Exception as exc:
            raise SchemaError(str(exc) or type(exc).__name__) from exc
