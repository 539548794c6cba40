"""
Storage interface for forms, email lists and responses.

Core services only talk to ``Repository``. ``InMemoryRepository`` is the
development stand-in (dicts keyed by generated ids); ``SQLRepository``
persists through the SQLAlchemy models. Owner-scoped lookups always filter
on ``(id, owner_id)``.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import TypeAdapter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.email_list import EmailList
from models.form import Form, FormResponse
from schemas.base import ensure_utc
from schemas.email_list import EmailEntry, EmailListCreate, EmailListRecord, EmailListUpdate
from schemas.fields import FieldSchema
from schemas.form import FormCreate, FormRecord, FormUpdate
from schemas.response import ResponseRecord

logger = logging.getLogger(__name__)

_fields_adapter = TypeAdapter(List[FieldSchema])


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def dump_fields(fields) -> list:
    return [field.model_dump(by_alias=True, exclude_none=True) for field in fields]


class Repository(ABC):
    # Forms
    @abstractmethod
    async def create_form(self, owner_id: str, data: FormCreate) -> FormRecord: ...

    @abstractmethod
    async def get_form(self, form_id: str) -> Optional[FormRecord]: ...

    @abstractmethod
    async def get_owned_form(self, form_id: str, owner_id: str) -> Optional[FormRecord]: ...

    @abstractmethod
    async def list_forms(self, owner_id: str) -> List[FormRecord]: ...

    @abstractmethod
    async def update_form(self, form_id: str, owner_id: str, data: FormUpdate) -> Optional[FormRecord]: ...

    @abstractmethod
    async def delete_form(self, form_id: str, owner_id: str) -> bool: ...

    # Responses
    @abstractmethod
    async def create_response(self, response: ResponseRecord) -> ResponseRecord: ...

    @abstractmethod
    async def list_responses(self, form_id: str) -> List[ResponseRecord]:
        """Responses of a form in creation order"""

    # Email lists
    @abstractmethod
    async def create_email_list(self, owner_id: str, data: EmailListCreate) -> EmailListRecord: ...

    @abstractmethod
    async def get_email_list(self, list_id: str, owner_id: str) -> Optional[EmailListRecord]: ...

    @abstractmethod
    async def list_email_lists(self, owner_id: str) -> List[EmailListRecord]: ...

    @abstractmethod
    async def update_email_list(
        self, list_id: str, owner_id: str, data: EmailListUpdate
    ) -> Optional[EmailListRecord]: ...

    @abstractmethod
    async def append_emails(
        self, list_id: str, owner_id: str, entries: List[EmailEntry]
    ) -> Optional[EmailListRecord]: ...

    @abstractmethod
    async def delete_email_list(self, list_id: str, owner_id: str) -> bool: ...


class InMemoryRepository(Repository):
    def __init__(self):
        self.forms: Dict[str, FormRecord] = {}
        self.email_lists: Dict[str, EmailListRecord] = {}
        self.responses: Dict[str, ResponseRecord] = {}

    async def create_form(self, owner_id: str, data: FormCreate) -> FormRecord:
        now = _now()
        form = FormRecord(
            id=_new_id(),
            owner_id=owner_id,
            title=data.title,
            description=data.description,
            fields=data.fields,
            is_public=data.is_public,
            expires_at=data.expires_at,
            created_at=now,
            updated_at=now,
        )
        self.forms[form.id] = form
        return form.model_copy(deep=True)

    async def get_form(self, form_id: str) -> Optional[FormRecord]:
        form = self.forms.get(form_id)
        return form.model_copy(deep=True) if form else None

    async def get_owned_form(self, form_id: str, owner_id: str) -> Optional[FormRecord]:
        form = self.forms.get(form_id)
        if form is None or form.owner_id != owner_id:
            return None
        return form.model_copy(deep=True)

    async def list_forms(self, owner_id: str) -> List[FormRecord]:
        forms = [form.model_copy(deep=True) for form in self.forms.values() if form.owner_id == owner_id]
        # Newest first; later inserts win ties
        return sorted(reversed(forms), key=lambda form: form.created_at, reverse=True)

    async def update_form(self, form_id: str, owner_id: str, data: FormUpdate) -> Optional[FormRecord]:
        form = self.forms.get(form_id)
        if form is None or form.owner_id != owner_id:
            return None
        changes = {name: getattr(data, name) for name in data.model_fields_set}
        changes["updated_at"] = _now()
        updated = form.model_copy(update=changes, deep=True)
        self.forms[form_id] = updated
        return updated.model_copy(deep=True)

    async def delete_form(self, form_id: str, owner_id: str) -> bool:
        form = self.forms.get(form_id)
        if form is None or form.owner_id != owner_id:
            return False
        del self.forms[form_id]
        return True

    async def create_response(self, response: ResponseRecord) -> ResponseRecord:
        self.responses[response.id] = response.model_copy(deep=True)
        return response

    async def list_responses(self, form_id: str) -> List[ResponseRecord]:
        return [
            response.model_copy(deep=True)
            for response in self.responses.values()
            if response.form_id == form_id
        ]

    async def create_email_list(self, owner_id: str, data: EmailListCreate) -> EmailListRecord:
        now = _now()
        email_list = EmailListRecord(
            id=_new_id(),
            owner_id=owner_id,
            name=data.name,
            emails=data.emails,
            created_at=now,
            updated_at=now,
        )
        self.email_lists[email_list.id] = email_list
        return email_list.model_copy(deep=True)

    async def get_email_list(self, list_id: str, owner_id: str) -> Optional[EmailListRecord]:
        email_list = self.email_lists.get(list_id)
        if email_list is None or email_list.owner_id != owner_id:
            return None
        return email_list.model_copy(deep=True)

    async def list_email_lists(self, owner_id: str) -> List[EmailListRecord]:
        lists = [item.model_copy(deep=True) for item in self.email_lists.values() if item.owner_id == owner_id]
        return sorted(reversed(lists), key=lambda item: item.created_at, reverse=True)

    async def update_email_list(
        self, list_id: str, owner_id: str, data: EmailListUpdate
    ) -> Optional[EmailListRecord]:
        email_list = self.email_lists.get(list_id)
        if email_list is None or email_list.owner_id != owner_id:
            return None
        changes = {name: getattr(data, name) for name in data.model_fields_set}
        changes["updated_at"] = _now()
        updated = email_list.model_copy(update=changes, deep=True)
        self.email_lists[list_id] = updated
        return updated.model_copy(deep=True)

    async def append_emails(
        self, list_id: str, owner_id: str, entries: List[EmailEntry]
    ) -> Optional[EmailListRecord]:
        email_list = self.email_lists.get(list_id)
        if email_list is None or email_list.owner_id != owner_id:
            return None
        updated = email_list.model_copy(
            update={"emails": email_list.emails + list(entries), "updated_at": _now()},
            deep=True,
        )
        self.email_lists[list_id] = updated
        return updated.model_copy(deep=True)

    async def delete_email_list(self, list_id: str, owner_id: str) -> bool:
        email_list = self.email_lists.get(list_id)
        if email_list is None or email_list.owner_id != owner_id:
            return False
        del self.email_lists[list_id]
        return True


class SQLRepository(Repository):
    def __init__(self, db: AsyncSession):
        self.db = db

    # Conversions
    @staticmethod
    def _form_record(form: Form) -> FormRecord:
        return FormRecord(
            id=form.id,
            owner_id=form.owner_id,
            title=form.title,
            description=form.description,
            fields=_fields_adapter.validate_python(form.fields or []),
            is_public=form.is_public,
            expires_at=ensure_utc(form.expires_at),
            created_at=ensure_utc(form.created_at),
            updated_at=ensure_utc(form.updated_at),
        )

    @staticmethod
    def _response_record(row: FormResponse) -> ResponseRecord:
        return ResponseRecord(
            id=row.id,
            form_id=row.form_id,
            respondent_email=row.respondent_email,
            respondent_name=row.respondent_name,
            responses=row.responses or {},
            file_uploads=row.file_uploads or [],
            submitted_at=ensure_utc(row.submitted_at),
            ip_address=row.ip_address,
            user_agent=row.user_agent,
        )

    @staticmethod
    def _email_list_record(row: EmailList) -> EmailListRecord:
        return EmailListRecord(
            id=row.id,
            owner_id=row.owner_id,
            name=row.name,
            emails=row.emails or [],
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )

    async def _owned_form_row(self, form_id: str, owner_id: str) -> Optional[Form]:
        result = await self.db.execute(
            select(Form).where(Form.id == form_id, Form.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def _owned_list_row(self, list_id: str, owner_id: str) -> Optional[EmailList]:
        result = await self.db.execute(
            select(EmailList).where(EmailList.id == list_id, EmailList.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def _commit(self, row):
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(row)

    # Forms
    async def create_form(self, owner_id: str, data: FormCreate) -> FormRecord:
        now = _now()
        row = Form(
            id=_new_id(),
            owner_id=owner_id,
            title=data.title,
            description=data.description,
            fields=dump_fields(data.fields),
            is_public=data.is_public,
            expires_at=data.expires_at,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        await self._commit(row)
        return self._form_record(row)

    async def get_form(self, form_id: str) -> Optional[FormRecord]:
        row = await self.db.get(Form, form_id)
        return self._form_record(row) if row else None

    async def get_owned_form(self, form_id: str, owner_id: str) -> Optional[FormRecord]:
        row = await self._owned_form_row(form_id, owner_id)
        return self._form_record(row) if row else None

    async def list_forms(self, owner_id: str) -> List[FormRecord]:
        result = await self.db.execute(
            select(Form).where(Form.owner_id == owner_id).order_by(Form.created_at.desc())
        )
        return [self._form_record(row) for row in result.scalars().all()]

    async def update_form(self, form_id: str, owner_id: str, data: FormUpdate) -> Optional[FormRecord]:
        row = await self._owned_form_row(form_id, owner_id)
        if row is None:
            return None
        for name in data.model_fields_set:
            value = getattr(data, name)
            if name == "fields":
                value = dump_fields(value)
            setattr(row, name, value)
        row.updated_at = _now()
        await self._commit(row)
        return self._form_record(row)

    async def delete_form(self, form_id: str, owner_id: str) -> bool:
        row = await self._owned_form_row(form_id, owner_id)
        if row is None:
            return False
        await self.db.delete(row)
        await self.db.commit()
        return True

    # Responses
    async def create_response(self, response: ResponseRecord) -> ResponseRecord:
        row = FormResponse(
            id=response.id,
            form_id=response.form_id,
            respondent_email=response.respondent_email,
            respondent_name=response.respondent_name,
            responses=response.responses,
            file_uploads=[upload.model_dump(by_alias=True) for upload in response.file_uploads],
            submitted_at=response.submitted_at,
            ip_address=response.ip_address,
            user_agent=response.user_agent,
        )
        self.db.add(row)
        await self._commit(row)
        return self._response_record(row)

    async def list_responses(self, form_id: str) -> List[ResponseRecord]:
        result = await self.db.execute(
            select(FormResponse).where(FormResponse.form_id == form_id).order_by(FormResponse.seq)
        )
        return [self._response_record(row) for row in result.scalars().all()]

    # Email lists
    async def create_email_list(self, owner_id: str, data: EmailListCreate) -> EmailListRecord:
        now = _now()
        row = EmailList(
            id=_new_id(),
            owner_id=owner_id,
            name=data.name,
            emails=[entry.model_dump() for entry in data.emails],
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        await self._commit(row)
        return self._email_list_record(row)

    async def get_email_list(self, list_id: str, owner_id: str) -> Optional[EmailListRecord]:
        row = await self._owned_list_row(list_id, owner_id)
        return self._email_list_record(row) if row else None

    async def list_email_lists(self, owner_id: str) -> List[EmailListRecord]:
        result = await self.db.execute(
            select(EmailList).where(EmailList.owner_id == owner_id).order_by(EmailList.created_at.desc())
        )
        return [self._email_list_record(row) for row in result.scalars().all()]

    async def update_email_list(
        self, list_id: str, owner_id: str, data: EmailListUpdate
    ) -> Optional[EmailListRecord]:
        row = await self._owned_list_row(list_id, owner_id)
        if row is None:
            return None
        if "name" in data.model_fields_set:
            row.name = data.name
        if "emails" in data.model_fields_set:
            row.emails = [entry.model_dump() for entry in data.emails]
        row.updated_at = _now()
        await self._commit(row)
        return self._email_list_record(row)

    async def append_emails(
        self, list_id: str, owner_id: str, entries: List[EmailEntry]
    ) -> Optional[EmailListRecord]:
        row = await self._owned_list_row(list_id, owner_id)
        if row is None:
            return None
        # Reassign so the JSON column is flagged dirty
        row.emails = list(row.emails or []) + [entry.model_dump() for entry in entries]
        row.updated_at = _now()
        await self._commit(row)
        return self._email_list_record(row)

    async def delete_email_list(self, list_id: str, owner_id: str) -> bool:
        row = await self._owned_list_row(list_id, owner_id)
        if row is None:
            return False
        await self.db.delete(row)
        await self.db.commit()
        return True


# Process-wide development store
memory_repository = InMemoryRepository()
