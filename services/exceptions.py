from typing import Any, Dict, List, Optional


class FormAppError(Exception):
    """Base error mapped to an HTTP status and a JSON body at the request boundary"""
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.details}


class Unauthorized(FormAppError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(FormAppError):
    status_code = 404
    default_message = "Not found"


class InvalidInput(FormAppError):
    status_code = 400
    default_message = "Invalid input"


class ValidationFailed(FormAppError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, fields: List[str], errors: Optional[Dict[str, Dict[str, str]]] = None):
        self.fields = fields
        self.errors = errors or {}
        super().__init__(self.default_message, fields=fields, errors=self.errors)


class FormExpired(FormAppError):
    status_code = 403
    default_message = "This form has expired and no longer accepts responses"


class FormNotPublic(FormAppError):
    status_code = 403
    default_message = "This form is not publicly accessible"


class CollaboratorError(FormAppError):
    status_code = 500
    default_message = "A dependent service failed"


class StorageError(CollaboratorError):
    default_message = "Failed to store uploaded file"
