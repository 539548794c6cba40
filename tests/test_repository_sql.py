from datetime import datetime, timedelta, timezone

import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models.base import Base
from schemas.email_list import EmailEntry, EmailListCreate, EmailListUpdate
from schemas.fields import ChoiceField, NumberField
from schemas.form import FormCreate, FormUpdate
from schemas.response import FileUpload, ResponseRecord
from services.repository import SQLRepository


@pytest_asyncio.fixture
async def sql_repository():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield SQLRepository(session)

    await engine.dispose()


def survey():
    return FormCreate(
        title="Survey",
        description="Quarterly",
        fields=[
            {"id": "score", "type": "rating", "label": "Score", "minValue": 1, "maxValue": 5},
            {"id": "plan", "type": "dropdown", "label": "Plan", "options": ["Free", "Pro"]},
        ],
        is_public=True,
        expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )


async def test_form_round_trip(sql_repository):
    created = await sql_repository.create_form("owner-1", survey())

    fetched = await sql_repository.get_owned_form(created.id, "owner-1")

    assert fetched.title == "Survey"
    assert [field.id for field in fetched.fields] == ["score", "plan"]
    assert isinstance(fetched.fields[0], NumberField)
    assert isinstance(fetched.fields[1], ChoiceField)
    assert fetched.fields[1].options == ["Free", "Pro"]
    assert fetched.expires_at == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert fetched.created_at.tzinfo is not None
    assert await sql_repository.get_owned_form(created.id, "owner-2") is None
    assert (await sql_repository.get_form(created.id)).id == created.id


async def test_update_and_delete_form(sql_repository):
    created = await sql_repository.create_form("owner-1", survey())

    updated = await sql_repository.update_form(
        created.id, "owner-1", FormUpdate(title="Renamed", fields=[{"id": "n", "type": "text"}])
    )

    assert updated.title == "Renamed"
    assert updated.description == "Quarterly"
    assert [field.id for field in updated.fields] == ["n"]
    assert updated.updated_at >= created.updated_at
    assert await sql_repository.update_form(created.id, "owner-2", FormUpdate(title="X")) is None

    assert await sql_repository.delete_form(created.id, "owner-2") is False
    assert await sql_repository.delete_form(created.id, "owner-1") is True
    assert await sql_repository.get_form(created.id) is None


async def test_list_forms_is_owner_scoped(sql_repository):
    await sql_repository.create_form("owner-1", survey())
    await sql_repository.create_form("owner-2", survey())

    assert len(await sql_repository.list_forms("owner-1")) == 1


async def test_responses_keep_creation_order(sql_repository):
    form = await sql_repository.create_form("owner-1", survey())
    submitted_at = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    for response_id in ["r1", "r2", "r3"]:
        await sql_repository.create_response(ResponseRecord(
            id=response_id,
            form_id=form.id,
            responses={"score": 4},
            file_uploads=[FileUpload(
                field_id="cv", file_name="cv.pdf", file_size=3, file_type="application/pdf", file_url="https://u"
            )],
            submitted_at=submitted_at,
        ))

    responses = await sql_repository.list_responses(form.id)

    assert [response.id for response in responses] == ["r1", "r2", "r3"]
    assert responses[0].responses == {"score": 4}
    assert responses[0].file_uploads[0].file_name == "cv.pdf"
    assert responses[0].submitted_at == submitted_at


async def test_responses_outlive_deleted_form(sql_repository):
    form = await sql_repository.create_form("owner-1", survey())
    await sql_repository.create_response(ResponseRecord(
        id="orphan", form_id=form.id, submitted_at=datetime.now(timezone.utc) - timedelta(minutes=1)
    ))

    await sql_repository.delete_form(form.id, "owner-1")

    assert [response.id for response in await sql_repository.list_responses(form.id)] == ["orphan"]


async def test_email_list_lifecycle(sql_repository):
    created = await sql_repository.create_email_list(
        "owner-1", EmailListCreate(name="Team", emails=[{"email": "a@x.com", "name": "Ann"}])
    )

    appended = await sql_repository.append_emails(
        created.id, "owner-1", [EmailEntry(email="a@x.com"), EmailEntry(email="b@x.com", name="")]
    )
    assert [(e.email, e.name) for e in appended.emails] == [("a@x.com", "Ann"), ("a@x.com", None), ("b@x.com", "")]

    renamed = await sql_repository.update_email_list(created.id, "owner-1", EmailListUpdate(name="Core team"))
    assert renamed.name == "Core team"
    assert len(renamed.emails) == 3

    assert await sql_repository.get_email_list(created.id, "owner-2") is None
    assert [item.id for item in await sql_repository.list_email_lists("owner-1")] == [created.id]
    assert await sql_repository.delete_email_list(created.id, "owner-1") is True
    assert await sql_repository.get_email_list(created.id, "owner-1") is None
