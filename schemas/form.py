from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field, field_validator

from .base import CamelModel, ensure_utc
from .fields import FieldSchema


def _check_unique_ids(fields):
    seen = set()
    duplicates = []
    for field in fields or []:
        if field.id in seen:
            duplicates.append(field.id)
        seen.add(field.id)
    if duplicates:
        raise ValueError(f"Duplicate field ids: {', '.join(sorted(set(duplicates)))}")
    return fields


def _check_title(value):
    if value is None or not value.strip():
        raise ValueError("Title is required")
    return value.strip()


# Form schemas
class FormCreate(CamelModel):
    title: str
    description: Optional[str] = None
    fields: List[FieldSchema]
    is_public: bool = False
    expires_at: Optional[datetime] = None

    normalize_title = field_validator("title")(_check_title)
    unique_field_ids = field_validator("fields")(_check_unique_ids)
    normalize_expires_at = field_validator("expires_at")(ensure_utc)


class FormUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    fields: Optional[List[FieldSchema]] = None
    is_public: Optional[bool] = None
    expires_at: Optional[datetime] = None

    normalize_title = field_validator("title")(_check_title)
    normalize_expires_at = field_validator("expires_at")(ensure_utc)

    @field_validator("fields")
    @classmethod
    def check_fields(cls, value):
        if value is None:
            raise ValueError("Fields must be a list")
        return _check_unique_ids(value)

    @field_validator("is_public")
    @classmethod
    def check_is_public(cls, value):
        if value is None:
            raise ValueError("isPublic must be a boolean")
        return value


class FormRecord(CamelModel):
    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    fields: List[FieldSchema] = []
    is_public: bool = False
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return ensure_utc(self.expires_at) < ensure_utc(now)


class PublicFormView(CamelModel):
    """Renderable shape of a form for respondents, without owner data"""
    id: str
    title: str
    description: Optional[str] = None
    fields: List[FieldSchema] = []
    expires_at: Optional[datetime] = None
    is_expired: bool = False

    @classmethod
    def from_form(cls, form: FormRecord, now: Optional[datetime] = None) -> "PublicFormView":
        return cls(
            id=form.id,
            title=form.title,
            description=form.description,
            fields=form.fields,
            expires_at=form.expires_at,
            is_expired=form.is_expired(now),
        )


class FormListResponse(CamelModel):
    forms: List[FormRecord]


class FormEnvelope(CamelModel):
    form: FormRecord
    message: Optional[str] = None


class PublicFormEnvelope(CamelModel):
    success: bool = True
    form: PublicFormView
