import logging
from typing import List, Optional

from schemas.distribution import DistributionResult
from schemas.email_list import EmailEntry
from schemas.form import FormRecord
from services.email_service import EmailService, email_service
from services.exceptions import CollaboratorError
from services.template_service import TemplateService, template_service

logger = logging.getLogger(__name__)


class DistributionService:
    """Renders one invitation per recipient and hands them to the email transport"""

    def __init__(self, templates: Optional[TemplateService] = None, mailer: Optional[EmailService] = None):
        self.templates = templates or template_service
        self.mailer = mailer or email_service

    async def send_form_invitations(
        self,
        form: FormRecord,
        recipients: List[EmailEntry],
        sender_name: Optional[str] = None,
    ) -> DistributionResult:
        sender_name = (sender_name or "").strip() or None
        messages = [
            self.templates.render_invitation(
                form,
                to_email=recipient.email,
                recipient_name=recipient.name,
                sender_name=sender_name,
            )
            for recipient in recipients
        ]

        outcomes = await self.mailer.send_batch(messages, from_name=sender_name)
        sent = sum(1 for outcome in outcomes if outcome.status == "sent")
        failed = len(outcomes) - sent

        if messages and sent == 0:
            logger.error(f"Failed to send any invitations for form {form.id}")
            raise CollaboratorError("Failed to send emails", failed=failed)

        if failed:
            logger.warning(f"Sent {sent} invitations for form {form.id}, {failed} failed")
            message = f"Form sent to {sent} recipients, {failed} failed"
        else:
            logger.info(f"Sent {sent} invitations for form {form.id}")
            message = f"Form sent successfully to {sent} recipients"

        return DistributionResult(
            success=True,
            message=message,
            form_id=form.id,
            sent=sent,
            failed=failed,
            recipients=outcomes,
        )


# Global distribution service instance
distribution_service = DistributionService()
