from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm

from app import crud
from app.api.deps import SessionDep
from app.core import security
from app.core.config import settings
from app.models import Token, User, UserLogin, UserPublic, UserRegister

router = APIRouter(tags=["login"])


def _issue_token(user: User) -> Token:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return Token(
        access_token=security.create_access_token(user.id, expires_delta=access_token_expires)
    )


@router.post("/login/access-token")
def login_access_token(
    session: SessionDep, form_data: Annotated[OAuth2PasswordRequestForm, Depends()]
) -> Token:
    """
    OAuth2 compatible token login, get an access token for future requests
    """
    user = crud.authenticate(
        session=session, email=form_data.username, password=form_data.password
    )
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    return _issue_token(user)


@router.post("/auth/login")
def login_json(session: SessionDep, body: UserLogin) -> Token:
    """
    JSON login used by the mobile client.
    """
    user = crud.authenticate(session=session, email=body.email, password=body.password)
    if not user:
        raise HTTPException(status_code=401, detail="invalid credentials")
    return _issue_token(user)


@router.post("/auth/register", response_model=UserPublic, status_code=201)
def register(session: SessionDep, user_in: UserRegister) -> Any:
    """
    Create a new user account. Email addresses are unique, case-insensitively.
    """
    return crud.create_user(session=session, user_create=user_in)
