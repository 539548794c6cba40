import csv
import io
from datetime import datetime, timedelta, timezone

from schemas.form import FormRecord
from schemas.response import FileUpload, ResponseFilter, ResponseRecord, SortOrder
from services.response_service import (
    content_disposition,
    export_csv,
    export_filename,
    filter_responses,
    list_responses,
    sort_responses,
    summarize_responses,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_form(fields, title="Survey"):
    return FormRecord(
        id="form-1",
        owner_id="owner-1",
        title=title,
        fields=fields,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )


def make_response(response_id, minutes=0, email=None, responses=None, uploads=None):
    return ResponseRecord(
        id=response_id,
        form_id="form-1",
        respondent_email=email,
        responses=responses or {},
        file_uploads=uploads or [],
        submitted_at=BASE_TIME + timedelta(minutes=minutes),
    )


def test_filter_by_respondent_presence():
    responses = [make_response("a", email="a@x.com"), make_response("b"), make_response("c", email="c@x.com")]

    assert [r.id for r in filter_responses(responses, ResponseFilter.ALL)] == ["a", "b", "c"]
    assert [r.id for r in filter_responses(responses, ResponseFilter.HAS_RESPONDENT_EMAIL)] == ["a", "c"]
    assert [r.id for r in filter_responses(responses, ResponseFilter.ANONYMOUS_ONLY)] == ["b"]


def test_sort_is_stable_on_ties():
    responses = [
        make_response("first", minutes=5),
        make_response("tie-1", minutes=1),
        make_response("tie-2", minutes=1),
    ]

    assert [r.id for r in sort_responses(responses, SortOrder.OLDEST)] == ["tie-1", "tie-2", "first"]
    assert [r.id for r in sort_responses(responses, SortOrder.NEWEST)] == ["first", "tie-1", "tie-2"]


async def test_list_responses_filters_then_sorts(repository):
    for response in [
        make_response("old", minutes=0, email="a@x.com"),
        make_response("anon", minutes=1),
        make_response("new", minutes=2, email="b@x.com"),
    ]:
        await repository.create_response(response)

    listed = await list_responses(repository, "form-1", ResponseFilter.HAS_RESPONDENT_EMAIL, SortOrder.NEWEST)
    assert [r.id for r in listed] == ["new", "old"]


def test_export_csv_header_and_empty_cells():
    form = make_form([{"id": "name", "type": "text", "label": "Name"}])
    responses = [make_response("1", responses={"name": "Ann"}), make_response("2")]

    lines = export_csv(form, responses).split("\n")

    assert lines[0] == "Respondent,Date,Name"
    assert lines[1] == "Anonymous,2024-05-01,Ann"
    assert lines[2].split(",")[2] == ""
    assert len(lines) == 3


def test_export_csv_formats_cells():
    form = make_form([
        {"id": "agree", "type": "checkbox", "label": "Agree"},
        {"id": "tags", "type": "text", "label": "Tags"},
        {"id": "cv", "type": "file", "label": "CV"},
        {"id": "score", "type": "number", "label": "Score"},
    ])
    response = make_response(
        "1",
        email="ann@x.com",
        responses={"agree": False, "tags": ["a", "b"], "score": 7},
        uploads=[FileUpload(field_id="cv", file_name="cv.pdf", file_size=10, file_type="application/pdf", file_url="u")],
    )

    rows = list(csv.reader(io.StringIO(export_csv(form, [response]))))

    assert rows[1] == ["ann@x.com", "2024-05-01", "No", "a, b", "cv.pdf", "7"]


def test_export_csv_quotes_embedded_separators():
    form = make_form([{"id": "note", "type": "textarea", "label": "Note, long"}])
    response = make_response("1", responses={"note": 'He said "hi",\nthen left'})

    text = export_csv(form, [response])
    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == ["Respondent", "Date", "Note, long"]
    assert rows[1][2] == 'He said "hi",\nthen left'
    assert not text.endswith("\n")


def test_export_filename_is_safe():
    assert export_filename(make_form([], title="Q1/Q2 Survey")) == "Q1_Q2 Survey_responses.csv"
    assert export_filename(make_form([], title="Résumé")) == "R_sum__responses.csv"


def test_content_disposition_keeps_unicode_title():
    header = content_disposition(make_form([], title="Опрос"))
    header.encode("latin-1")
    assert header.startswith('attachment; filename="______responses.csv"')
    assert "filename*=UTF-8''%D0%9E%D0%BF%D1%80%D0%BE%D1%81_responses.csv" in header


def test_summary_counts():
    form = make_form([
        {"id": "name", "type": "text", "label": "Name"},
        {"id": "cv", "type": "file", "label": "CV"},
    ])
    responses = [
        make_response("1", minutes=0, email="a@x.com", responses={"name": "Ann"}),
        make_response(
            "2",
            minutes=3,
            uploads=[FileUpload(field_id="cv", file_name="cv.pdf", file_size=1, file_type="application/pdf", file_url="u")],
        ),
    ]

    summary = summarize_responses(form, responses)

    assert summary.total == 2
    assert summary.identified == 1
    assert summary.anonymous == 1
    assert summary.latest_submitted_at == BASE_TIME + timedelta(minutes=3)
    assert summary.answered_by_field == {"name": 1, "cv": 1}
