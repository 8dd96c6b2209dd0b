from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MappingSourceKind(str, Enum):
    FORM = "form"
    ACTION = "action"
    CLIENT = "client"
    OTHER = "other"


class PrefillMapping(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_field_id: str = Field(alias="targetFieldId")
    # older clients send "sourceType"
    source_kind: MappingSourceKind = Field(
        validation_alias=AliasChoices("sourceKind", "sourceType", "source_kind"),
        serialization_alias="sourceKind",
    )
    source_path: str = Field(alias="sourcePath")


class PrefillConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: str = Field(alias="formId")
    enabled: bool = False
    mappings: list[PrefillMapping] = []

    def to_wire(self) -> dict:
        """JSON document as stored and sent over the wire (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)
