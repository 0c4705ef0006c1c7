from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Iterable, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..core.security import UserRole

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC; convert aware input to match."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

# Datetime accepted from clients, normalized to naive UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]

class APIModel(BaseModel):
    """Base for request/response bodies: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

class UserSummary(APIModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None

class UserResponse(APIModel):
    id: int
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    is_active: bool
    is_verified: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

def updates_from(payload: BaseModel, json_fields: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Non-null fields the client actually sent, keyed by model attribute name.

    Values bound for JSON columns are stored in their wire (camelCase) form.
    """
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for name in json_fields:
        if name in data:
            data[name] = jsonable_encoder(getattr(payload, name), by_alias=True)
    return data
