from .fields import FieldType, FieldSchema
from .form import FormCreate, FormUpdate, FormRecord, PublicFormView, FormListResponse, FormEnvelope, PublicFormEnvelope
from .response import (
    FileUpload,
    ResponseRecord,
    ResponseFilter,
    SortOrder,
    PublicSubmission,
    SubmissionResult,
    ResponseListResponse,
    ResponseSummary,
)
from .email_list import (
    EmailEntry,
    EmailListCreate,
    EmailListUpdate,
    EmailListRecord,
    EmailImportResult,
    EmailListImportResponse,
    EmailListCollection,
    EmailListEnvelope,
)
from .distribution import SendFormRequest, SendListRequest, RecipientOutcome, DistributionResult

__all__ = [
    "FieldType",
    "FieldSchema",
    "FormCreate",
    "FormUpdate",
    "FormRecord",
    "PublicFormView",
    "FormListResponse",
    "FormEnvelope",
    "PublicFormEnvelope",
    "FileUpload",
    "ResponseRecord",
    "ResponseFilter",
    "SortOrder",
    "PublicSubmission",
    "SubmissionResult",
    "ResponseListResponse",
    "ResponseSummary",
    "EmailEntry",
    "EmailListCreate",
    "EmailListUpdate",
    "EmailListRecord",
    "EmailImportResult",
    "EmailListImportResponse",
    "EmailListCollection",
    "EmailListEnvelope",
    "SendFormRequest",
    "SendListRequest",
    "RecipientOutcome",
    "DistributionResult",
]
