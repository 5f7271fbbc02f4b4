from decimal import Decimal
from typing import Any

from bson import Decimal128, ObjectId
from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder

from adapters.base import QueryError, SchemaError, UnsupportedEngineError
from api.schemas import ConnectionTestResponse, DataSourcePayload, QueryRequest, QueryResponse, SchemaRequest
from datasource.service import execute_query, get_schema_info, test_connection

router = APIRouter()

_ENCODERS = {
    ObjectId: str,
    Decimal128: str,
    Decimal: str,
    bytes: lambda value: value.hex(),
}


def _jsonable(payload: Any) -> Any:
    return jsonable_encoder(payload, custom_encoder=_ENCODERS)


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/datasources/test", response_model=ConnectionTestResponse)
async def test_datasource_connection(payload: DataSourcePayload) -> ConnectionTestResponse:
    result = await test_connection(payload.to_record())
    return ConnectionTestResponse(
        status="success" if result.success else "error",
        message=result.message,
        data=_jsonable(result.data),
    )


@router.post("/datasources/query", response_model=QueryResponse, response_model_by_alias=True)
async def run_datasource_query(request: QueryRequest):
    try:
        result = await execute_query(
            request.data_source.to_record(),
            request.query,
            params=request.params,
            timeout=request.timeout_seconds,
        )
    except (UnsupportedEngineError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except QueryError as exc:
        raise HTTPException(status_code=400, detail=f"Query failed: {exc}") from exc
    return _jsonable(result.to_dict())


@router.post("/datasources/schema")
async def describe_datasource_schema(request: SchemaRequest) -> dict:
    try:
        schema = await get_schema_info(request.data_source.to_record(), timeout=request.timeout_seconds)
    except (UnsupportedEngineError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SchemaError as exc:
        raise HTTPException(status_code=500, detail=f"Schema introspection failed: {exc}") from exc
    return _jsonable(schema.to_dict())
