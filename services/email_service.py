import logging
from typing import Any, Dict, List, Optional

import resend

from config import settings
from schemas.distribution import RecipientOutcome
from services.template_service import RenderedEmail

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        batch_size: Optional[int] = None,
    ):
        self.resend_api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.from_email = from_email or settings.FROM_EMAIL
        self.batch_size = max(1, batch_size or settings.EMAIL_BATCH_SIZE)

        if not self.resend_api_key:
            logger.warning("RESEND_API_KEY not found in environment variables")
        else:
            resend.api_key = self.resend_api_key
            logger.info("Resend service initialized successfully")

    @property
    def configured(self) -> bool:
        return bool(self.resend_api_key)

    def _params(self, message: RenderedEmail, from_name: Optional[str] = None) -> Dict[str, Any]:
        sender = f"{from_name} <{self.from_email}>" if from_name else self.from_email
        return {
            "from": sender,
            "to": [message.to_email],
            "subject": message.subject,
            "html": message.html_content,
            "text": message.text_content,
        }

    @staticmethod
    def _message_ids(result: Any) -> List[Optional[str]]:
        data = result.get("data", []) if isinstance(result, dict) else result
        return [item.get("id") if isinstance(item, dict) else None for item in (data or [])]

    async def send_batch(
        self, messages: List[RenderedEmail], from_name: Optional[str] = None
    ) -> List[RecipientOutcome]:
        """
        Send messages through Resend in chunks of batch_size.

        Delivery status is only known per chunk: a failed chunk marks every
        recipient in it as failed, while the other chunks still go out.
        """
        outcomes: List[RecipientOutcome] = []

        # Process in batches to stay under the provider's batch limit
        for i in range(0, len(messages), self.batch_size):
            chunk = messages[i:i + self.batch_size]

            if not self.configured:
                outcomes.extend(
                    RecipientOutcome(email=m.to_email, status="failed", error="Email provider is not configured")
                    for m in chunk
                )
                continue

            try:
                result = resend.Batch.send([self._params(m, from_name) for m in chunk])
            except Exception as e:
                logger.error(f"Failed to send email batch of {len(chunk)}: {str(e)}")
                outcomes.extend(
                    RecipientOutcome(email=m.to_email, status="failed", error=str(e)) for m in chunk
                )
                continue

            ids = self._message_ids(result)
            for index, message in enumerate(chunk):
                outcomes.append(RecipientOutcome(
                    email=message.to_email,
                    status="sent",
                    message_id=ids[index] if index < len(ids) else None,
                ))

        return outcomes

    async def get_provider_health(self) -> Dict[str, Any]:
        return {"resend": {"available": self.configured}}


# Global email service instance
email_service = EmailService()
