from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FieldInfo:
    name: str
    type: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    row_count: int
    fields: List[FieldInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "rowCount": self.row_count,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class ConnectionResult:
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, message: str) -> "ConnectionResult":
        return cls(success=False, message=message, data=None)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


@dataclass
class ColumnInfo:
    name: str
    type: str
    length: Optional[int] = None
    nullable: Optional[bool] = None
    default: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "length": self.length,
            "nullable": self.nullable,
            "default": self.default,
        }


@dataclass
class TableInfo:
    name: str
    columns: List[ColumnInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "columns": [c.to_dict() for c in self.columns]}


@dataclass
class RelationalSchema:
    database: str
    schema: Optional[str]
    tables: List[TableInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"database": self.database}
        # MySQL has no schema layer below the database.
        if self.schema is not None:
            payload["schema"] = self.schema
        payload["tables"] = [t.to_dict() for t in self.tables]
        return payload


@dataclass
class CollectionField:
    name: str
    types: List[str] = field(default_factory=list)

    def add_type(self, type_tag: str) -> None:
        if type_tag not in self.types:
            self.types.append(type_tag)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "types": list(self.types)}


@dataclass
class CollectionInfo:
    name: str
    fields: List[CollectionField] = field(default_factory=list)
    document_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
            "document_count": self.document_count,
        }


@dataclass
class DocumentSchema:
    database: str
    collections: List[CollectionInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"database": self.database, "collections": [c.to_dict() for c in self.collections]}
