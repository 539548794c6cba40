from typing import List, Optional, Union

from pydantic import Field, field_validator

from .base import CamelModel
from .email_list import EmailEntry, _check_addresses


class SendFormRequest(CamelModel):
    form_id: str = Field(min_length=1)
    emails: List[Union[EmailEntry, str]] = Field(min_length=1)
    sender_name: Optional[str] = None

    @field_validator("emails")
    @classmethod
    def normalize_recipients(cls, value):
        entries = [EmailEntry(email=item) if isinstance(item, str) else item for item in value]
        return _check_addresses(entries)


class SendListRequest(CamelModel):
    form_id: str = Field(min_length=1)
    sender_name: Optional[str] = None


class RecipientOutcome(CamelModel):
    email: str
    status: str  # sent, failed
    message_id: Optional[str] = None
    error: Optional[str] = None


class DistributionResult(CamelModel):
    success: bool
    message: str
    form_id: str
    sent: int
    failed: int
    recipients: List[RecipientOutcome]
