import logging

from fastapi import APIRouter, Depends, Query, Response, status

from routes.dependencies import get_current_user, get_repository
from schemas.form import FormCreate, FormEnvelope, FormListResponse, FormUpdate
from schemas.response import ResponseFilter, ResponseListResponse, ResponseSummary, SortOrder
from services import response_service
from services.auth_service import CallerIdentity
from services.exceptions import CollaboratorError, FormAppError, NotFound
from services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["forms"])


async def _owned_form(repository: Repository, form_id: str, owner_id: str):
    form = await repository.get_owned_form(form_id, owner_id)
    if form is None:
        raise NotFound("Form not found")
    return form


@router.get("/forms", response_model=FormListResponse)
async def list_forms(
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """List the caller's forms, newest first"""
    try:
        forms = await repository.list_forms(current_user.uid)
        return FormListResponse(forms=forms)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error listing forms: {str(e)}")
        raise CollaboratorError("Failed to list forms")


@router.post("/forms", response_model=FormEnvelope, status_code=status.HTTP_201_CREATED)
async def create_form(
    form_data: FormCreate,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Create a new form endpoint"""
    try:
        form = await repository.create_form(current_user.uid, form_data)
        logger.info(f"Created new form: {form.id}")
        return FormEnvelope(form=form, message="Form created successfully")
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating form: {str(e)}")
        raise CollaboratorError("Failed to create form")


@router.get("/forms/{form_id}", response_model=FormEnvelope)
async def get_form(
    form_id: str,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        form = await _owned_form(repository, form_id, current_user.uid)
        return FormEnvelope(form=form)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error getting form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to get form")


@router.put("/forms/{form_id}", response_model=FormEnvelope)
async def update_form(
    form_id: str,
    form_data: FormUpdate,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Update title, description, fields or publishing flags of an owned form"""
    try:
        form = await repository.update_form(form_id, current_user.uid, form_data)
        if form is None:
            raise NotFound("Form not found")
        logger.info(f"Updated form: {form_id}")
        return FormEnvelope(form=form, message="Form updated successfully")
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to update form")


@router.delete("/forms/{form_id}")
async def delete_form(
    form_id: str,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        deleted = await repository.delete_form(form_id, current_user.uid)
        if not deleted:
            raise NotFound("Form not found")
        logger.info(f"Deleted form: {form_id}")
        return {"success": True, "message": "Form deleted successfully"}
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to delete form")


async def _form_responses(
    repository: Repository,
    form_id: str,
    owner_id: str,
    response_filter: ResponseFilter,
    sort_order: SortOrder,
) -> ResponseListResponse:
    try:
        await _owned_form(repository, form_id, owner_id)
        responses = await response_service.list_responses(repository, form_id, response_filter, sort_order)
        return ResponseListResponse(responses=responses, total=len(responses))
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error listing responses for form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to fetch responses")


@router.get("/forms/{form_id}/responses", response_model=ResponseListResponse)
async def list_form_responses(
    form_id: str,
    response_filter: ResponseFilter = Query(ResponseFilter.ALL, alias="filter"),
    sort: SortOrder = Query(SortOrder.NEWEST),
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """List responses of an owned form, filtered by respondent presence and sorted by submission time"""
    return await _form_responses(repository, form_id, current_user.uid, response_filter, sort)


@router.get("/form-responses", response_model=ResponseListResponse)
async def list_form_responses_by_query(
    form_id: str = Query(..., alias="formId", min_length=1),
    response_filter: ResponseFilter = Query(ResponseFilter.ALL, alias="filter"),
    sort: SortOrder = Query(SortOrder.NEWEST),
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    return await _form_responses(repository, form_id, current_user.uid, response_filter, sort)


@router.get("/forms/{form_id}/responses/export")
async def export_form_responses(
    form_id: str,
    response_filter: ResponseFilter = Query(ResponseFilter.ALL, alias="filter"),
    sort: SortOrder = Query(SortOrder.NEWEST),
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Download responses as CSV, one row per response"""
    try:
        form = await _owned_form(repository, form_id, current_user.uid)
        responses = await response_service.list_responses(repository, form_id, response_filter, sort)
        content = response_service.export_csv(form, responses)
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": response_service.content_disposition(form)},
        )
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error exporting responses for form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to export responses")


@router.get("/forms/{form_id}/responses/summary", response_model=ResponseSummary)
async def summarize_form_responses(
    form_id: str,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        form = await _owned_form(repository, form_id, current_user.uid)
        responses = await repository.list_responses(form_id)
        return response_service.summarize_responses(form, responses)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error summarizing responses for form {form_id}: {str(e)}")
        raise CollaboratorError("Failed to summarize responses")
