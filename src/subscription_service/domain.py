"""Shared domain model base and request validation helpers."""

from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict
from pydantic import ValidationError as PydanticValidationError

from subscription_service.exceptions import FieldError, ValidationFailedError

RequestT = TypeVar("RequestT", bound=PydanticBaseModel)


class BaseModel(PydanticBaseModel):
    """Base model for domain entities."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "__root__"


def build_request(model: type[RequestT], **data: Any) -> RequestT:
    """
    Construct a request model, reporting every invalid field at once.

    Raises:
        ValidationFailedError: with one FieldError per offending field
    """
    try:
        return model(**data)
    except PydanticValidationError as exc:
        errors = [
            FieldError(field=_field_name(err["loc"]), message=_clean_message(err["msg"]))
            for err in exc.errors()
        ]
        raise ValidationFailedError(errors) from exc


def _clean_message(message: str) -> str:
    # pydantic prefixes messages raised from validators
    prefix = "Value error, "
    return message[len(prefix) :] if message.startswith(prefix) else message
