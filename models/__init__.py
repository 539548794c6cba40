from .base import Base
from .form import Form, FormResponse
from .email_list import EmailList

__all__ = [
    "Base",
    "Form",
    "FormResponse",
    "EmailList",
]
