"""Shared pydantic base classes and field types."""
from typing import Annotated, Any
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

# Error types reported as "missing" by the request validation handler
BLANK_ERROR = "blank"
NIL_UUID_ERROR = "nil_uuid"


def _reject_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError(BLANK_ERROR, "Field must not be blank")
    return value


def _reject_nil_uuid(value: UUID) -> UUID:
    if value.int == 0:
        raise PydanticCustomError(NIL_UUID_ERROR, "Field must not be the empty id")
    return value


RequiredStr = Annotated[str, AfterValidator(_reject_blank)]
RequiredUUID = Annotated[UUID, AfterValidator(_reject_nil_uuid)]


class ApiModel(BaseModel):
    """
    Base for request/response bodies.

    Serializes as camelCase and accepts either camelCase or snake_case input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _canonical(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


class DocumentModel(ApiModel):
    """
    Base for models decoded from database-built JSON documents.

    Keys are matched case-insensitively and independent of naming convention,
    so ``PartyId``, ``partyId`` and ``party_id`` all populate ``party_id``.
    """

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = {_canonical(name): name for name in cls.model_fields}
        return {lookup.get(_canonical(str(key)), key): value for key, value in data.items()}
