"""
Field validation shared by every submission path.

Each field variant has exactly one value validator registered on
``_validate_value``; the registry is checked against the variant list at
import so a new variant without a validator fails loudly. Validation is
pure: the same call gives the same answer on the client preview and on
the server, and only the server result is authoritative.
"""

import math
import re
from dataclasses import dataclass, field as dataclass_field
from datetime import date
from enum import Enum
from functools import singledispatch
from typing import Any, Dict, List, Mapping, Optional, Union, get_args
from urllib.parse import urlparse

from schemas.fields import (
    FIELD_VARIANTS,
    CheckboxField,
    ChoiceField,
    DateField,
    EmailField,
    FieldType,
    FileField,
    NumberField,
    PhoneField,
    TextField,
    UrlField,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_MAX_FILE_SIZE_MB = 5
BYTES_PER_MB = 1024 * 1024

TRUTHY = {"true", "yes", "on", "1"}
FALSY = {"false", "no", "off", "0"}


class ErrorKind(str, Enum):
    MISSING_REQUIRED = "missing_required"
    INVALID_FORMAT = "invalid_format"
    OUT_OF_RANGE = "out_of_range"
    TOO_LONG = "too_long"
    INVALID_OPTION = "invalid_option"
    FILE_TOO_LARGE = "file_too_large"
    FILE_TYPE_NOT_ALLOWED = "file_type_not_allowed"


@dataclass(frozen=True)
class UploadedFile:
    """A file part of a submission. ``size`` overrides len(content) for metadata-only checks."""
    filename: str
    content_type: str
    content: bytes = b""
    size: Optional[int] = None

    @property
    def file_size(self) -> int:
        return self.size if self.size is not None else len(self.content)


@dataclass(frozen=True)
class Accepted:
    value: Any
    ok = True


@dataclass(frozen=True)
class Rejected:
    reason: ErrorKind
    message: str
    ok = False


ValidationResult = Union[Accepted, Rejected]


@dataclass
class FormValidationResult:
    values: Dict[str, Any] = dataclass_field(default_factory=dict)
    files: Dict[str, UploadedFile] = dataclass_field(default_factory=dict)
    errors: Dict[str, Rejected] = dataclass_field(default_factory=dict)

    @property
    def failed_fields(self) -> List[str]:
        return list(self.errors)

    @property
    def valid(self) -> bool:
        return not self.errors


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def upload_limit_bytes(field: FileField) -> int:
    return int((field.max_file_size or DEFAULT_MAX_FILE_SIZE_MB) * BYTES_PER_MB)


def mime_type_allowed(content_type: str, allowed: List[str]) -> bool:
    """Match a MIME type against patterns; ``category/*`` matches any subtype"""
    if not allowed:
        return True
    content_type = (content_type or "").lower().strip()
    for pattern in allowed:
        pattern = pattern.lower().strip()
        if pattern.endswith("/*"):
            if content_type.startswith(pattern[:-1]):
                return True
        elif pattern == content_type:
            return True
    return False


def validate(field, raw_value: Any = None, uploaded_file: Optional[UploadedFile] = None) -> ValidationResult:
    """Validate one submitted value (or file) against its field schema"""
    if isinstance(field, FileField):
        present = uploaded_file is not None
    else:
        present = not is_absent(raw_value)

    if not present:
        if field.required:
            if isinstance(field, ChoiceField):
                return Rejected(ErrorKind.MISSING_REQUIRED, "Please select an option")
            return Rejected(ErrorKind.MISSING_REQUIRED, "This field is required")
        return Accepted(None)

    return _validate_value(field, raw_value, uploaded_file)


def validate_responses(
    fields: List[Any],
    responses: Mapping[str, Any],
    files: Optional[Mapping[str, UploadedFile]] = None,
) -> FormValidationResult:
    """Validate every field of a form, collecting all failures"""
    files = files or {}
    result = FormValidationResult()

    for field in fields:
        outcome = validate(field, responses.get(field.id), files.get(field.id))
        if isinstance(outcome, Rejected):
            result.errors[field.id] = outcome
        elif outcome.value is None:
            continue
        elif isinstance(field, FileField):
            result.files[field.id] = outcome.value
        else:
            result.values[field.id] = outcome.value

    return result


@singledispatch
def _validate_value(field, raw_value, uploaded_file) -> ValidationResult:
    raise TypeError(f"No validator for field schema {type(field).__name__}")


@_validate_value.register
def _validate_text(field: TextField, raw_value, uploaded_file) -> ValidationResult:
    if isinstance(raw_value, bool) or not isinstance(raw_value, (str, int, float)):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter text")
    value = raw_value if isinstance(raw_value, str) else str(raw_value)
    if field.max_length is not None and len(value) > field.max_length:
        return Rejected(ErrorKind.TOO_LONG, f"Text must be at most {field.max_length} characters")
    return Accepted(value)


@_validate_value.register
def _validate_email(field: EmailField, raw_value, uploaded_file) -> ValidationResult:
    if not is_valid_email(raw_value):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid email address")
    return Accepted(raw_value)


@_validate_value.register
def _validate_url(field: UrlField, raw_value, uploaded_file) -> ValidationResult:
    if not isinstance(raw_value, str):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid URL")
    value = raw_value.strip()
    try:
        parsed = urlparse(value)
    except ValueError:
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid URL")
    if not parsed.scheme or not parsed.netloc or any(ch.isspace() for ch in value):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid URL")
    return Accepted(value)


@_validate_value.register
def _validate_phone(field: PhoneField, raw_value, uploaded_file) -> ValidationResult:
    if isinstance(raw_value, bool) or not isinstance(raw_value, (str, int)):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a phone number")
    return Accepted(str(raw_value).strip())


@_validate_value.register
def _validate_date(field: DateField, raw_value, uploaded_file) -> ValidationResult:
    if not isinstance(raw_value, str):
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid date")
    try:
        parsed = date.fromisoformat(raw_value.strip())
    except ValueError:
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a valid date")
    return Accepted(parsed.isoformat())


@_validate_value.register
def _validate_checkbox(field: CheckboxField, raw_value, uploaded_file) -> ValidationResult:
    checked = None
    if isinstance(raw_value, bool):
        checked = raw_value
    elif isinstance(raw_value, str):
        lowered = raw_value.strip().lower()
        if lowered in TRUTHY:
            checked = True
        elif lowered in FALSY:
            checked = False
    if checked is None:
        return Rejected(ErrorKind.INVALID_FORMAT, "Please check or uncheck this box")
    # A required box must be ticked
    if field.required and not checked:
        return Rejected(ErrorKind.MISSING_REQUIRED, "This field is required")
    return Accepted(checked)


def _parse_number(raw_value) -> Optional[Union[int, float]]:
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        value = raw_value
    elif isinstance(raw_value, str):
        text = raw_value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
    else:
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
    return value


@_validate_value.register
def _validate_number(field: NumberField, raw_value, uploaded_file) -> ValidationResult:
    value = _parse_number(raw_value)
    if value is None:
        return Rejected(ErrorKind.INVALID_FORMAT, "Please enter a number")
    if field.min_value is not None and value < field.min_value:
        return Rejected(ErrorKind.OUT_OF_RANGE, f"Value must be at least {field.min_value:g}")
    if field.max_value is not None and value > field.max_value:
        return Rejected(ErrorKind.OUT_OF_RANGE, f"Value must be at most {field.max_value:g}")
    return Accepted(value)


@_validate_value.register
def _validate_choice(field: ChoiceField, raw_value, uploaded_file) -> ValidationResult:
    if not isinstance(raw_value, str) or raw_value not in field.options:
        return Rejected(ErrorKind.INVALID_OPTION, "Please select one of the available options")
    return Accepted(raw_value)


@_validate_value.register
def _validate_file(field: FileField, raw_value, uploaded_file) -> ValidationResult:
    max_size = field.max_file_size or DEFAULT_MAX_FILE_SIZE_MB
    if uploaded_file.file_size / BYTES_PER_MB > max_size:
        return Rejected(ErrorKind.FILE_TOO_LARGE, f"File size exceeds the maximum limit of {max_size:g}MB")
    if not mime_type_allowed(uploaded_file.content_type, field.allowed_file_types):
        return Rejected(ErrorKind.FILE_TYPE_NOT_ALLOWED, "File type not allowed")
    return Accepted(uploaded_file)


def _check_coverage():
    missing = [variant.__name__ for variant in FIELD_VARIANTS if variant not in _validate_value.registry]
    if missing:
        raise RuntimeError(f"Field variants without a validator: {', '.join(missing)}")

    covered = {
        value
        for variant in FIELD_VARIANTS
        for value in get_args(variant.model_fields["type"].annotation)
    }
    uncovered = {field_type.value for field_type in FieldType} - covered
    if uncovered:
        raise RuntimeError(f"Field types without a schema variant: {', '.join(sorted(uncovered))}")


_check_coverage()
