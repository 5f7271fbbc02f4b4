from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DataSourcePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., min_length=2, max_length=30)
    host: str = Field(..., min_length=1, max_length=255)
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    database: str = Field(..., min_length=1, max_length=255)
    username: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1024)
    schema_name: Optional[str] = Field(default=None, alias="schema", max_length=255)
    ssl: bool = False
    connection_options: Dict[str, Any] = Field(default_factory=dict, alias="connectionOptions")

    def to_record(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "username": self.username,
            "password": self.password,
            "schema": self.schema_name,
            "ssl": self.ssl,
            "connectionOptions": self.connection_options,
        }


class ConnectionTestResponse(BaseModel):
    status: str
    message: str
    data: Optional[Dict[str, Any]] = None


class QueryRequest(BaseModel):
    data_source: DataSourcePayload
    query: Union[str, Dict[str, Any]] = Field(..., description="SQL text, or a structured MongoDB operation")
    params: Optional[List[Any]] = Field(default=None, description="Positional parameters bound by the driver")
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=3600)


class FieldPayload(BaseModel):
    name: str
    type: Any


class QueryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rows: List[Dict[str, Any]]
    row_count: int = Field(..., alias="rowCount")
    fields: List[FieldPayload]


class SchemaRequest(BaseModel):
    data_source: DataSourcePayload
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=3600)
