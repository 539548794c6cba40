import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from config import settings
from services.exceptions import Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    email: Optional[str] = None


class AuthService:
    """Verifies identity-provider bearer tokens and resolves the caller's stable user id"""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(
        self,
        uid: str,
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token for a user (development and tests)"""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.access_token_expire_minutes)
        )
        to_encode = {"sub": uid, "exp": expire}
        if email:
            to_encode["email"] = email
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> CallerIdentity:
        """Verify a token and extract the caller identity"""
        if not token:
            raise Unauthorized()

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except jwt.PyJWTError:
            logger.warning("Token verification failed")
            raise Unauthorized("Invalid token")

        uid = payload.get("sub") or payload.get("uid")
        if not uid:
            raise Unauthorized("Invalid token")

        return CallerIdentity(uid=str(uid), email=payload.get("email"))


# Global auth service instance
auth_service = AuthService()
