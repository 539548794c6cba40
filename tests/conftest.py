import os

# Settings are read at import time, so the environment is fixed before the app loads
os.environ["REPOSITORY_BACKEND"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["FROM_EMAIL"] = "forms@example.com"
os.environ["APP_BASE_URL"] = "https://forms.example.com"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["PUBLIC_SUBMISSION_RATE_LIMIT"] = "1000/minute"
os.environ["S3_BUCKET_NAME"] = ""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from main import app
from routes.dependencies import get_repository, get_submission_service
from services.auth_service import auth_service
from services.rate_limit_service import limiter
from services.repository import InMemoryRepository
from services.submission_service import SubmissionService


def auth_header(uid: str) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(uid)}"}


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def storage():
    storage = MagicMock()
    storage.build_key.side_effect = lambda form_id, filename: f"form-uploads/{form_id}/{filename}"
    storage.upload_file = AsyncMock(
        side_effect=lambda content, key, content_type: f"https://bucket.s3.amazonaws.com/{key}"
    )
    storage.delete_file = AsyncMock(return_value=True)
    return storage


@pytest.fixture
def client(repository, storage):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_submission_service] = lambda: SubmissionService(repository, storage)
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return auth_header("owner-1")


@pytest.fixture
def other_headers():
    return auth_header("owner-2")


@pytest.fixture
def yesterday():
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def survey_payload():
    return {
        "title": "Survey",
        "description": "Tell us what you think",
        "isPublic": True,
        "fields": [
            {"id": "f1", "type": "email", "label": "Email", "required": True},
            {"id": "f2", "type": "text", "label": "Comments", "maxLength": 200},
            {"id": "f3", "type": "dropdown", "label": "Plan", "options": ["Free", "Pro"]},
        ],
    }
