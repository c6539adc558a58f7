"""Bearer-token authentication. The token subject is the owner id."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from flowsmith.config import settings
from flowsmith.core.errors import AuthenticationError, AuthorizationError
from flowsmith.core.logging import logger

security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    username: Optional[str] = None


def create_access_token(
    subject: str,
    username: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode: Dict[str, Any] = {"exp": expire, "sub": str(subject)}
    if username:
        to_encode["username"] = username
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token verification failed: {e}")
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    if credentials is None:
        raise AuthenticationError("Missing authorization header")

    payload = verify_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        logger.info("Token verification failed")
        raise AuthenticationError("Could not validate credentials")

    return CurrentUser(id=payload["sub"], username=payload.get("username"))


def ensure_same_user(current_user: CurrentUser, user_id: str) -> None:
    if current_user.id != user_id:
        logger.warning(f"User {current_user.id} attempted to act for {user_id}")
        raise AuthorizationError("Cannot act on behalf of another user")
