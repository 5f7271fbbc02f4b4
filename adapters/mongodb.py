from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pymongo import AsyncMongoClient

from adapters.base import DatabaseAdapter, QueryError
from adapters.results import CollectionField, CollectionInfo, DocumentSchema, FieldInfo, QueryResult


SCHEMA_SAMPLE_SIZE = 5
SUPPORTED_OPERATIONS = ("find", "findOne", "aggregate")
# Driver bound stays below the outer asyncio bound.
DRIVER_TIMEOUT_RATIO = 0.9


def type_tag(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _parse_query(query: Any) -> Dict[str, Any]:
    if isinstance(query, (str, bytes)):
        try:
            query = json.loads(query)
        except json.JSONDecodeError as exc:
            raise QueryError(f"MongoDB query is not valid JSON: {exc}") from exc
    if not isinstance(query, Mapping):
        raise QueryError("MongoDB query must be an object with collection and operation")
    return dict(query)


class MongoDBAdapter(DatabaseAdapter):
    """Document engine variant.

    Queries are structured descriptors rather than text:
    ``{"collection": ..., "operation": "find" | "findOne" | "aggregate",
    "filter": ..., "projection": ..., "options": ...}``. For ``aggregate`` the
    ``filter`` slot carries the whole pipeline.

    There is no declared schema, so introspection samples a handful of
    documents per collection and reports every runtime type seen for each
    field. Document counts are exact.
    """

    engine = "mongodb"
    label = "MongoDB"

    def _client_params(self, timeout: Optional[float]) -> Dict[str, Any]:
        source = self.descriptor
        params: Dict[str, Any] = {
            "host": source.host,
            "port": source.resolved_port,
            "tls": source.ssl,
        }
        if source.username:
            params["username"] = source.username
            params["password"] = source.password
            params["authSource"] = source.database
        if timeout is not None:
            timeout_ms = max(1, int(timeout * 1000 * DRIVER_TIMEOUT_RATIO))
            params["serverSelectionTimeoutMS"] = timeout_ms
            params["connectTimeoutMS"] = timeout_ms
        params.update(source.options)
        return params

    async def _connect(self, timeout: Optional[float]) -> AsyncMongoClient:
        client: AsyncMongoClient = AsyncMongoClient(**self._client_params(timeout))
        try:
            await client.aconnect()
        except BaseException:
            await client.close()
            raise
        return client

    async def _close(self, conn: AsyncMongoClient) -> None:
        await conn.close()

    async def probe(self, conn: AsyncMongoClient) -> Dict[str, Any]:
        names = await conn[self.descriptor.database].list_collection_names()
        return {"collections_count": len(names), "database_type": self.label}

    async def run_query(
        self,
        conn: AsyncMongoClient,
        query: Any,
        params: Optional[Sequence[Any]],
    ) -> QueryResult:
        operation_spec = _parse_query(query)
        collection_name = operation_spec.get("collection")
        if not collection_name:
            raise QueryError("MongoDB query is missing a collection name")
        operation = operation_spec.get("operation")
        if operation not in SUPPORTED_OPERATIONS:
            raise QueryError(f"Unsupported operation: {operation}")
        filter_arg = operation_spec.get("filter")
        projection = operation_spec.get("projection") or None
        options = dict(operation_spec.get("options") or {})
        collection = conn[self.descriptor.database][collection_name]

        if operation == "find":
            cursor = collection.find(filter_arg or {}, projection, **options)
            rows = await cursor.to_list(None)
        elif operation == "findOne":
            document = await collection.find_one(filter_arg or {}, projection, **options)
            rows = [document] if document is not None else []
        else:
            pipeline = filter_arg if filter_arg is not None else []
            if not isinstance(pipeline, list):
                raise QueryError("aggregate expects the filter to be a pipeline (list of stages)")
            cursor = await collection.aggregate(pipeline, **options)
            rows = await cursor.to_list(None)

        fields = [FieldInfo(name=key, type=type_tag(value)) for key, value in rows[0].items()] if rows else []
        return QueryResult(rows=rows, row_count=len(rows), fields=fields)

    async def introspect(self, conn: AsyncMongoClient) -> DocumentSchema:
        database = conn[self.descriptor.database]
        collections: List[CollectionInfo] = []
        for name in sorted(await database.list_collection_names()):
            collection = database[name]
            sample = await collection.find().limit(SCHEMA_SAMPLE_SIZE).to_list(None)

            observed: Dict[str, CollectionField] = {}
            for document in sample:
                for key, value in document.items():
                    observed.setdefault(key, CollectionField(name=key)).add_type(type_tag(value))

            collections.append(
                CollectionInfo(
                    name=name,
                    fields=list(observed.values()),
                    document_count=await collection.count_documents({}),
                )
            )
        return DocumentSchema(database=self.descriptor.database, collections=collections)
