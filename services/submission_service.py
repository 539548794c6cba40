import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from schemas.fields import FileField
from schemas.form import FormRecord
from schemas.response import FileUpload, ResponseRecord
from services.exceptions import FormExpired, NotFound, StorageError, ValidationFailed
from services.repository import Repository
from services.storage_service import StorageService
from services.validation_service import UploadedFile, upload_limit_bytes, validate_responses

logger = logging.getLogger(__name__)


@dataclass
class SubmissionPayload:
    responses: Mapping[str, Any]
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    files: Dict[str, UploadedFile] = field(default_factory=dict)


def normalize_respondent_email(value: Optional[str]) -> Optional[str]:
    """Validated respondent email, or None when absent or malformed"""
    if not value or not value.strip():
        return None
    try:
        validated = validate_email(value.strip(), check_deliverability=False)
        return validated.normalized
    except EmailNotValidError:
        logger.warning("Dropping invalid respondent email on submission")
        return None


class SubmissionService:
    """
    Runs one submission attempt through lookup, expiry, validation and
    file ingestion before persisting a single immutable response.

    Any step can reject; nothing is persisted unless every step passes.
    """

    def __init__(self, repository: Repository, storage: StorageService):
        self.repository = repository
        self.storage = storage

    async def upload_limits(self, form_id: str) -> Dict[str, int]:
        """Largest accepted upload in bytes, keyed by file field id"""
        form = await self.repository.get_form(form_id)
        if form is None:
            raise NotFound("Form not found")
        return {schema.id: upload_limit_bytes(schema) for schema in form.fields if isinstance(schema, FileField)}

    async def submit(
        self,
        form_id: str,
        payload: SubmissionPayload,
        now: Optional[datetime] = None,
    ) -> ResponseRecord:
        now = now or datetime.now(timezone.utc)

        form = await self.repository.get_form(form_id)
        if form is None:
            raise NotFound("Form not found")

        if form.is_expired(now):
            logger.warning(f"Rejected submission to expired form {form_id}")
            raise FormExpired()

        checked = validate_responses(form.fields, payload.responses or {}, payload.files)
        if not checked.valid:
            logger.warning(f"Rejected submission to form {form_id}: {len(checked.errors)} invalid fields")
            raise ValidationFailed(
                fields=checked.failed_fields,
                errors={
                    field_id: {"reason": rejected.reason.value, "message": rejected.message}
                    for field_id, rejected in checked.errors.items()
                },
            )

        file_uploads = await self._ingest_files(form, checked.files)

        response = ResponseRecord(
            id=str(uuid.uuid4()),
            form_id=form.id,
            respondent_email=normalize_respondent_email(payload.respondent_email),
            respondent_name=(payload.respondent_name or "").strip() or None,
            responses=checked.values,
            file_uploads=[upload for upload, _ in file_uploads],
            submitted_at=now,
            ip_address=payload.ip_address,
            user_agent=payload.user_agent,
        )

        try:
            saved = await self.repository.create_response(response)
        except Exception:
            await self._discard([key for _, key in file_uploads])
            raise

        logger.info(f"Form submission persisted: {saved.id} (form {form.id})")
        return saved

    async def _ingest_files(
        self, form: FormRecord, files: Dict[str, UploadedFile]
    ) -> List[Tuple[FileUpload, str]]:
        """Store every accepted file or none of them"""
        stored: List[Tuple[FileUpload, str]] = []
        # Keep form field order for the uploads list
        for schema in form.fields:
            uploaded = files.get(schema.id)
            if uploaded is None:
                continue
            key = self.storage.build_key(form.id, uploaded.filename)
            try:
                url = await self.storage.upload_file(uploaded.content, key, uploaded.content_type)
            except StorageError:
                await self._discard([stored_key for _, stored_key in stored])
                raise
            except Exception as e:
                await self._discard([stored_key for _, stored_key in stored])
                raise StorageError() from e

            stored.append((
                FileUpload(
                    field_id=schema.id,
                    file_name=uploaded.filename,
                    file_size=uploaded.file_size,
                    file_type=uploaded.content_type,
                    file_url=url,
                ),
                key,
            ))
        return stored

    async def _discard(self, keys: List[str]):
        for key in keys:
            await self.storage.delete_file(key)
