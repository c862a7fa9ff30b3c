# harvestchain/models/base.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from harvestchain.errors import ValidationError, pydantic_message

M = TypeVar("M", bound=BaseModel)


def utcnow() -> datetime:
    # Mongo hands back naive UTC datetimes; store them the same way.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_payload(model: Type[M], payload: Any) -> M:
    """Validate a request body into `model`, raising our 400 error on failure."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(pydantic_message(e)) from e


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a Mongo id; malformed ids are treated as absent records."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _json_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


def serialize_doc(doc: Optional[Dict[str, Any]], hide=()) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    return {k: _json_value(v) for k, v in doc.items() if k not in hide}
