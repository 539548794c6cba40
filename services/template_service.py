import logging
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup
from jinja2 import Environment, select_autoescape

from config import settings
from schemas.form import FormRecord

logger = logging.getLogger(__name__)

INVITATION_SUBJECT = "{{ sender_name }}: {{ title }}"

INVITATION_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>{{ title }}</h2>
  {% if description %}<p>{{ description }}</p>{% endif %}
  {% if recipient_name %}<p>Hi {{ recipient_name }},</p>{% endif %}
  <p>{{ sender_name }} has invited you to fill out this form.</p>
  <div style="margin: 30px 0;">
    <a href="{{ form_url }}" style="background-color: #4F46E5; color: white; padding: 12px 20px; text-decoration: none; border-radius: 4px; display: inline-block;">Fill Out Form</a>
  </div>
  <p>Or copy and paste this link into your browser:</p>
  <p>{{ form_url }}</p>
  <hr style="margin: 30px 0; border: none; border-top: 1px solid #E5E7EB;" />
  <p style="color: #6B7280; font-size: 14px;">This email was sent from {{ app_name }}.</p>
</div>
"""


@dataclass(frozen=True)
class RenderedEmail:
    to_email: str
    subject: str
    html_content: str
    text_content: str


class TemplateService:
    def __init__(self, base_url: Optional[str] = None, app_name: Optional[str] = None):
        self.base_url = (base_url or settings.APP_BASE_URL).rstrip("/")
        self.app_name = app_name or settings.DEFAULT_SENDER_NAME
        # Subjects are plain text, bodies are HTML
        self.text_env = Environment(autoescape=False)
        self.html_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
        self.subject_template = self.text_env.from_string(INVITATION_SUBJECT)
        self.html_template = self.html_env.from_string(INVITATION_HTML)

    def form_link(self, form_id: str) -> str:
        return f"{self.base_url}/form/{form_id}"

    def render_invitation(
        self,
        form: FormRecord,
        to_email: str,
        recipient_name: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> RenderedEmail:
        """Render the invitation message for one recipient"""
        data = {
            "title": form.title,
            "description": form.description,
            "form_url": self.form_link(form.id),
            "sender_name": sender_name or self.app_name,
            "recipient_name": recipient_name,
            "app_name": self.app_name,
        }
        html_content = self.html_template.render(**data)
        logger.debug(f"Rendered invitation for form {form.id} to {to_email}")
        return RenderedEmail(
            to_email=to_email,
            subject=self.subject_template.render(**data).strip(),
            html_content=html_content,
            text_content=self.html_to_text(html_content),
        )

    @staticmethod
    def html_to_text(html_content: str) -> str:
        soup = BeautifulSoup(html_content, "html.parser")
        return soup.get_text("\n", strip=True)


# Global template service instance
template_service = TemplateService()
