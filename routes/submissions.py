import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile

from config import settings
from routes.dependencies import get_repository, get_submission_service
from schemas.form import PublicFormEnvelope, PublicFormView
from schemas.response import PublicSubmission, SubmissionResult
from services.exceptions import CollaboratorError, FormAppError, FormNotPublic, InvalidInput, NotFound
from services.rate_limit_service import limiter
from services.repository import Repository
from services.submission_service import SubmissionPayload, SubmissionService
from services.validation_service import UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["submissions"])

FILE_PART_PREFIX = "file_"


def _client_details(request: Request) -> Dict[str, Optional[str]]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def _text_part(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


async def _multipart_payload(request: Request, upload_limits: Dict[str, int]) -> SubmissionPayload:
    form_data = await request.form()

    raw_responses = form_data.get("responses")
    responses: Dict[str, Any] = {}
    if isinstance(raw_responses, str) and raw_responses.strip():
        try:
            responses = json.loads(raw_responses)
        except ValueError:
            raise InvalidInput("Responses must be valid JSON")
    if not isinstance(responses, dict):
        raise InvalidInput("Responses must be a JSON object")

    files = {}
    for key, value in form_data.multi_items():
        if not key.startswith(FILE_PART_PREFIX) or not isinstance(value, UploadFile):
            continue
        # Browsers send an empty part for an untouched file input
        if not value.filename:
            continue
        field_id = key[len(FILE_PART_PREFIX):]
        if field_id not in upload_limits:
            continue
        limit = upload_limits[field_id]
        # Oversized parts are never read past the limit; validation reports them
        if value.size is not None and value.size > limit:
            content = b""
        else:
            content = await value.read(limit + 1)
        files[field_id] = UploadedFile(
            filename=value.filename,
            content_type=value.content_type or "application/octet-stream",
            content=content,
            size=value.size if value.size is not None else len(content),
        )

    return SubmissionPayload(
        responses=responses,
        respondent_email=_text_part(form_data.get("respondentEmail")),
        respondent_name=_text_part(form_data.get("respondentName")),
        files=files,
        **_client_details(request),
    )


async def _json_payload(request: Request) -> SubmissionPayload:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("Invalid JSON payload")

    if not isinstance(body, dict):
        raise InvalidInput("Invalid JSON payload")

    # Either {"responses": {...}, "respondentEmail": ...} or the bare responses map
    if isinstance(body.get("responses"), dict):
        return SubmissionPayload(
            responses=body["responses"],
            respondent_email=_text_part(body.get("respondentEmail")),
            respondent_name=_text_part(body.get("respondentName")),
            **_client_details(request),
        )
    return SubmissionPayload(responses=body, **_client_details(request))


@router.post("/forms/{form_id}/submit", response_model=SubmissionResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.PUBLIC_SUBMISSION_RATE_LIMIT)
async def submit_form(
    form_id: str,
    request: Request,
    service: SubmissionService = Depends(get_submission_service),
):
    """
    Submit a response to a form.

    Accepts multipart form-data (a ``responses`` JSON part plus
    ``file_{fieldId}`` file parts) or a JSON body.
    """
    try:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("multipart/form-data"):
            payload = await _multipart_payload(request, await service.upload_limits(form_id))
        else:
            payload = await _json_payload(request)

        response = await service.submit(form_id, payload)
        return SubmissionResult(response_id=response.id)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error in form submission: {str(e)}")
        raise CollaboratorError("Failed to process submission")


@router.post("/public/submit-form", response_model=SubmissionResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.PUBLIC_SUBMISSION_RATE_LIMIT)
async def submit_public_form(
    submission: PublicSubmission,
    request: Request,
    service: SubmissionService = Depends(get_submission_service),
):
    """Unauthenticated JSON submission by form id"""
    try:
        payload = SubmissionPayload(
            responses=submission.responses,
            respondent_email=submission.respondent_email,
            respondent_name=submission.respondent_name,
            **_client_details(request),
        )
        response = await service.submit(submission.form_id, payload)
        return SubmissionResult(response_id=response.id)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error in public form submission: {str(e)}")
        raise CollaboratorError("Failed to process submission")


@router.get("/public/forms/{form_id}", response_model=PublicFormEnvelope)
async def get_public_form(
    form_id: str,
    repository: Repository = Depends(get_repository),
):
    """Renderable shape of a public form, without owner data"""
    try:
        form = await repository.get_form(form_id)
        if form is None:
            raise NotFound("Form not found")
        if not form.is_public:
            raise FormNotPublic()
        return PublicFormEnvelope(form=PublicFormView.from_form(form))
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error getting public form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to get form")
