import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from routes.dependencies import get_current_user, get_repository
from schemas.distribution import DistributionResult, SendListRequest
from schemas.email_list import (
    EmailImportResult,
    EmailListCollection,
    EmailListCreate,
    EmailListEnvelope,
    EmailListImportResponse,
    EmailListUpdate,
)
from services.auth_service import CallerIdentity
from services.distribution_service import distribution_service
from services.exceptions import CollaboratorError, FormAppError, InvalidInput, NotFound
from services.file_service import FileProcessingError, email_list_import_service
from services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-lists", tags=["email-lists"])


async def _read_contacts(file: UploadFile) -> EmailImportResult:
    content = await file.read()
    try:
        return email_list_import_service.parse_upload(content, file.filename or "")
    except FileProcessingError as e:
        raise InvalidInput(str(e))


@router.get("", response_model=EmailListCollection)
async def list_email_lists(
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        email_lists = await repository.list_email_lists(current_user.uid)
        return EmailListCollection(email_lists=email_lists)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error listing email lists: {str(e)}")
        raise CollaboratorError("Failed to list email lists")


@router.post("", response_model=EmailListEnvelope, status_code=status.HTTP_201_CREATED)
async def create_email_list(
    list_data: EmailListCreate,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        email_list = await repository.create_email_list(current_user.uid, list_data)
        logger.info(f"Created email list {email_list.id} with {len(email_list.emails)} contacts")
        return EmailListEnvelope(email_list=email_list, message="Email list created successfully")
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error creating email list: {str(e)}")
        raise CollaboratorError("Failed to create email list")


@router.post("/import/preview", response_model=EmailImportResult)
async def preview_import(
    file: UploadFile = File(...),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Parse a contact file without saving it"""
    return await _read_contacts(file)


@router.get("/{list_id}", response_model=EmailListEnvelope)
async def get_email_list(
    list_id: str,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        email_list = await repository.get_email_list(list_id, current_user.uid)
        if email_list is None:
            raise NotFound("Email list not found")
        return EmailListEnvelope(email_list=email_list)
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error getting email list {list_id}: {str(e)}")
        raise CollaboratorError("Failed to get email list")


@router.put("/{list_id}", response_model=EmailListEnvelope)
async def update_email_list(
    list_id: str,
    list_data: EmailListUpdate,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        email_list = await repository.update_email_list(list_id, current_user.uid, list_data)
        if email_list is None:
            raise NotFound("Email list not found")
        logger.info(f"Updated email list: {list_id}")
        return EmailListEnvelope(email_list=email_list, message="Email list updated successfully")
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error updating email list {list_id}: {str(e)}")
        raise CollaboratorError("Failed to update email list")


@router.delete("/{list_id}")
async def delete_email_list(
    list_id: str,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    try:
        deleted = await repository.delete_email_list(list_id, current_user.uid)
        if not deleted:
            raise NotFound("Email list not found")
        logger.info(f"Deleted email list: {list_id}")
        return {"success": True, "message": "Email list deleted successfully"}
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error deleting email list {list_id}: {str(e)}")
        raise CollaboratorError("Failed to delete email list")


@router.post("/{list_id}/import", response_model=EmailListImportResponse)
async def import_contacts(
    list_id: str,
    file: UploadFile = File(...),
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Append contacts from a CSV or Excel file; malformed rows are skipped"""
    try:
        existing = await repository.get_email_list(list_id, current_user.uid)
        if existing is None:
            raise NotFound("Email list not found")

        parsed = await _read_contacts(file)
        email_list = await repository.append_emails(list_id, current_user.uid, parsed.entries)
        if email_list is None:
            raise NotFound("Email list not found")

        logger.info(f"Imported {len(parsed.entries)} contacts into list {list_id} ({parsed.skipped} skipped)")
        return EmailListImportResponse(
            email_list=email_list,
            imported=len(parsed.entries),
            skipped=parsed.skipped,
            has_skipped=parsed.has_skipped,
        )
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error importing contacts into list {list_id}: {str(e)}")
        raise CollaboratorError("Failed to import contacts")


@router.post("/{list_id}/send", response_model=DistributionResult)
async def send_form_to_list(
    list_id: str,
    request_data: SendListRequest,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Send a form invitation to every contact of an owned list"""
    try:
        email_list = await repository.get_email_list(list_id, current_user.uid)
        if email_list is None:
            raise NotFound("Email list not found")
        form = await repository.get_owned_form(request_data.form_id, current_user.uid)
        if form is None:
            raise NotFound("Form not found")
        if not email_list.emails:
            raise InvalidInput("Email list has no contacts")

        return await distribution_service.send_form_invitations(
            form, email_list.emails, request_data.sender_name
        )
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error sending form to list {list_id}: {str(e)}")
        raise CollaboratorError("Failed to send emails")
