from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import CamelModel


class ResponseFilter(str, Enum):
    ALL = "all"
    HAS_RESPONDENT_EMAIL = "identified"
    ANONYMOUS_ONLY = "anonymous"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


class FileUpload(CamelModel):
    field_id: str
    file_name: str
    file_size: int
    file_type: str
    file_url: str


class ResponseRecord(CamelModel):
    id: str
    form_id: str
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None
    responses: Dict[str, Any] = {}
    file_uploads: List[FileUpload] = []
    submitted_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# Public submission schemas
class PublicSubmission(CamelModel):
    form_id: str = Field(min_length=1)
    responses: Dict[str, Any]
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None


class SubmissionResult(CamelModel):
    success: bool = True
    message: str = "Form submitted successfully"
    response_id: str


class ResponseListResponse(CamelModel):
    responses: List[ResponseRecord]
    total: int


class ResponseSummary(CamelModel):
    form_id: str
    total: int
    identified: int
    anonymous: int
    latest_submitted_at: Optional[datetime] = None
    answered_by_field: Dict[str, int] = {}
