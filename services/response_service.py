import logging
import re
from typing import Any, List
from urllib.parse import quote

import pandas as pd

from schemas.fields import FileField
from schemas.form import FormRecord
from schemas.response import ResponseFilter, ResponseRecord, ResponseSummary, SortOrder
from services.repository import Repository
from services.validation_service import is_absent

logger = logging.getLogger(__name__)

FIXED_COLUMNS = ["Respondent", "Date"]
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9 _-]")


def filter_responses(responses: List[ResponseRecord], response_filter: ResponseFilter) -> List[ResponseRecord]:
    if response_filter == ResponseFilter.HAS_RESPONDENT_EMAIL:
        return [response for response in responses if response.respondent_email]
    if response_filter == ResponseFilter.ANONYMOUS_ONLY:
        return [response for response in responses if not response.respondent_email]
    return list(responses)


def sort_responses(responses: List[ResponseRecord], sort_order: SortOrder) -> List[ResponseRecord]:
    # sorted() is stable in both directions, so equal timestamps keep creation order
    return sorted(
        responses,
        key=lambda response: response.submitted_at,
        reverse=sort_order == SortOrder.NEWEST,
    )


async def list_responses(
    repository: Repository,
    form_id: str,
    response_filter: ResponseFilter = ResponseFilter.ALL,
    sort_order: SortOrder = SortOrder.NEWEST,
) -> List[ResponseRecord]:
    responses = await repository.list_responses(form_id)
    return sort_responses(filter_responses(responses, response_filter), sort_order)


def format_cell(field, response: ResponseRecord) -> str:
    if isinstance(field, FileField):
        upload = next((item for item in response.file_uploads if item.field_id == field.id), None)
        return upload.file_name if upload else ""

    value: Any = response.responses.get(field.id)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def export_csv(form: FormRecord, responses: List[ResponseRecord]) -> str:
    """
    Flatten responses into CSV text.

    Header is Respondent, Date, then field labels in form order. Cells are
    quoted per standard CSV rules; rows are joined with LF and the text has
    no trailing newline.
    """
    columns = FIXED_COLUMNS + [field.label for field in form.fields]
    rows = [
        [
            response.respondent_email or "Anonymous",
            response.submitted_at.date().isoformat(),
            *[format_cell(field, response) for field in form.fields],
        ]
        for response in responses
    ]

    frame = pd.DataFrame(rows, columns=columns, dtype=object)
    text = frame.to_csv(index=False, lineterminator="\n")
    if text.endswith("\n"):
        text = text[:-1]
    return text


def export_filename(form: FormRecord) -> str:
    """ASCII-only download name; other characters become underscores"""
    safe_title = UNSAFE_FILENAME_CHARS.sub("_", form.title).strip() or "form"
    return f"{safe_title}_responses.csv"


def content_disposition(form: FormRecord) -> str:
    # Header values must stay latin-1; the full title travels in filename*
    fallback = export_filename(form)
    encoded = quote(f"{form.title.strip() or 'form'}_responses.csv", safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def summarize_responses(form: FormRecord, responses: List[ResponseRecord]) -> ResponseSummary:
    identified = sum(1 for response in responses if response.respondent_email)
    latest = max((response.submitted_at for response in responses), default=None)

    answered = {}
    for field in form.fields:
        if isinstance(field, FileField):
            count = sum(
                1 for response in responses
                if any(upload.field_id == field.id for upload in response.file_uploads)
            )
        else:
            count = sum(1 for response in responses if not is_absent(response.responses.get(field.id)))
        answered[field.id] = count

    return ResponseSummary(
        form_id=form.id,
        total=len(responses),
        identified=identified,
        anonymous=len(responses) - identified,
        latest_submitted_at=latest,
        answered_by_field=answered,
    )
