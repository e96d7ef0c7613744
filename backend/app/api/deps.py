import uuid
from collections.abc import Generator
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError
from sqlmodel import Session

from app.core import security
from app.core.config import settings
from app.core.db import engine
from app.design.errors import AdminUnauthorizedError
from app.models import TokenPayload, User

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/login/access-token"
)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]
TokenDep = Annotated[str, Depends(reusable_oauth2)]


def get_current_user(session: SessionDep, token: TokenDep) -> User:
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[security.ALGORITHM]
        )
        token_data = TokenPayload(**payload)
    except (InvalidTokenError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_id = uuid.UUID(token_data.sub or "")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


class AdminCapability:
    """Proof that the caller presented the admin credential.

    Admin routes depend on this object rather than on a user, so the shared
    secret can later be swapped for per-admin accounts without touching them.
    """

    def __init__(self, source: str) -> None:
        self.source = source


def _bearer_value(authorization: str | None) -> str | None:
    value = (authorization or "").strip()
    if not value.startswith("Bearer "):
        return None
    return value[len("Bearer "):].strip() or None


def get_admin_capability(
    x_admin_secret: Annotated[str | None, Header()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> AdminCapability:
    header_secret = (x_admin_secret or "").strip()
    if header_secret:
        if security.verify_admin_secret(header_secret):
            return AdminCapability(source="x-admin-secret")
        raise AdminUnauthorizedError()
    if security.verify_admin_secret(_bearer_value(authorization)):
        return AdminCapability(source="authorization")
    raise AdminUnauthorizedError()


AdminDep = Annotated[AdminCapability, Depends(get_admin_capability)]
