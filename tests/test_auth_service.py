from datetime import timedelta

import jwt
import pytest

from services.auth_service import AuthService
from services.exceptions import Unauthorized


@pytest.fixture
def service():
    return AuthService(secret_key="unit-secret", algorithm="HS256")


async def test_round_trip_identity(service):
    token = service.create_access_token("user-42", email="u@x.com")
    identity = await service.verify_token(token)
    assert identity.uid == "user-42"
    assert identity.email == "u@x.com"


async def test_uid_claim_is_accepted(service):
    token = jwt.encode({"uid": "legacy-7"}, "unit-secret", algorithm="HS256")
    assert (await service.verify_token(token)).uid == "legacy-7"


async def test_expired_token_is_rejected(service):
    token = service.create_access_token("user-42", expires_delta=timedelta(seconds=-5))
    with pytest.raises(Unauthorized):
        await service.verify_token(token)


async def test_wrong_secret_and_missing_subject_are_rejected(service):
    forged = AuthService(secret_key="other-secret").create_access_token("user-42")
    with pytest.raises(Unauthorized):
        await service.verify_token(forged)

    no_subject = jwt.encode({"email": "u@x.com"}, "unit-secret", algorithm="HS256")
    with pytest.raises(Unauthorized):
        await service.verify_token(no_subject)

    with pytest.raises(Unauthorized):
        await service.verify_token("")
