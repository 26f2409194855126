from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Inbound payload: camelCase keys only, unknown keys rejected."""

    model_config = ConfigDict(alias_generator=to_camel, extra="forbid")


class PartialUpdateRequest(RequestModel):
    """PATCH body where an explicit ``null`` is only allowed for nullable columns."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        nulled = sorted(
            type(self).model_fields[name].alias or name
            for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if nulled:
            raise ValueError(f"cannot be null: {', '.join(nulled)}")
        return self


class ResponseModel(BaseModel):
    """Outbound shape: built from snake_case repository rows, serialized as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
