from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class GroupSourceKind(str, Enum):
    FORM = "form"
    GLOBAL = "global"


class FormField(BaseModel):
    id: str
    name: str
    type: str = "text"


class DataSourceField(BaseModel):
    id: str
    name: str
    path: str  # <groupId>.<fieldId>, the only persisted reference to a source


class DataSourceGroup(BaseModel):
    id: str
    name: str
    source_kind: GroupSourceKind
    render_key: str = ""
    fields: list[DataSourceField] | None = None
    children: list[DataSourceGroup] | None = None


class GlobalSourceField(BaseModel):
    id: str
    name: str


class GlobalSource(BaseModel):
    """Statically configured context object offered to every form."""

    id: str
    name: str
    fields: list[GlobalSourceField] = []


class DependencySummary(BaseModel):
    direct: list[str] = []
    transitive: list[str] = []


def field_path(group_id: str, field_id: str) -> str:
    return f"{group_id}.{field_id}"
