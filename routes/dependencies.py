from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from database import db_manager
from services.auth_service import CallerIdentity, auth_service
from services.exceptions import Unauthorized
from services.repository import Repository, SQLRepository, memory_repository
from services.storage_service import storage_service
from services.submission_service import SubmissionService

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CallerIdentity:
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return await auth_service.verify_token(credentials.credentials)


async def get_repository() -> AsyncGenerator[Repository, None]:
    if settings.REPOSITORY_BACKEND == "memory":
        yield memory_repository
        return

    session_factory = db_manager.init_engine()
    async with session_factory() as session:
        yield SQLRepository(session)


async def get_submission_service(repository: Repository = Depends(get_repository)) -> SubmissionService:
    return SubmissionService(repository, storage_service)
