import logging

from fastapi import APIRouter, Depends

from routes.dependencies import get_current_user, get_repository
from schemas.distribution import DistributionResult, SendFormRequest
from services.auth_service import CallerIdentity
from services.distribution_service import distribution_service
from services.exceptions import CollaboratorError, FormAppError, NotFound
from services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["distribution"])


@router.post("/send-form", response_model=DistributionResult)
async def send_form(
    request_data: SendFormRequest,
    repository: Repository = Depends(get_repository),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Email an invitation with the form's link to each recipient"""
    try:
        form = await repository.get_owned_form(request_data.form_id, current_user.uid)
        if form is None:
            raise NotFound("Form not found")

        return await distribution_service.send_form_invitations(
            form, request_data.emails, request_data.sender_name
        )
    except FormAppError:
        raise
    except Exception as e:
        logger.error(f"Error sending form {request_data.form_id}: {str(e)}")
        raise CollaboratorError("Failed to send emails")
