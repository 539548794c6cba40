from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from .base import CamelModel


class EmailEntry(CamelModel):
    email: str
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()


def _check_addresses(entries: List[EmailEntry]) -> List[EmailEntry]:
    from services.validation_service import is_valid_email

    invalid = [entry.email for entry in entries if not is_valid_email(entry.email)]
    if invalid:
        raise ValueError(f"Invalid email addresses: {', '.join(invalid)}")
    return entries


def _check_name(value):
    if value is None or not value.strip():
        raise ValueError("List name is required")
    return value.strip()


# Email list schemas
class EmailListCreate(CamelModel):
    name: str
    emails: List[EmailEntry]

    normalize_name = field_validator("name")(_check_name)
    check_addresses = field_validator("emails")(_check_addresses)


class EmailListUpdate(CamelModel):
    name: Optional[str] = None
    emails: Optional[List[EmailEntry]] = None

    normalize_name = field_validator("name")(_check_name)

    @field_validator("emails")
    @classmethod
    def check_emails(cls, value):
        if value is None:
            raise ValueError("Emails must be a list")
        return _check_addresses(value)


class EmailListRecord(CamelModel):
    id: str
    owner_id: str
    name: str
    emails: List[EmailEntry] = []
    created_at: datetime
    updated_at: datetime


class EmailImportResult(CamelModel):
    entries: List[EmailEntry]
    total_rows: int
    skipped: int
    has_skipped: bool = False


class EmailListImportResponse(CamelModel):
    email_list: EmailListRecord
    imported: int
    skipped: int
    has_skipped: bool


class EmailListCollection(CamelModel):
    email_lists: List[EmailListRecord]


class EmailListEnvelope(CamelModel):
    email_list: EmailListRecord
    message: Optional[str] = None
