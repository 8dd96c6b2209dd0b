from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class StepKind(str, Enum):
    FORM = "form"
    BRANCH = "branch"
    OTHER = "other"


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: StepKind = StepKind.OTHER
    display_name: str = ""
    position: Position
    attributes: dict[str, Any] = {}


class DependencyEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    id: str | None = None  # rendering only


# Raw payload shapes, as returned by the graph endpoint


class RawNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    position: Position | None = None
    data: dict[str, Any] | None = None


class RawEdge(BaseModel):
    model_config = ConfigDict(extra="allow")

    source: str
    target: str
    id: str | None = None
