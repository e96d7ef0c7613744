from fastapi.testclient import TestClient
from sqlmodel import Session

from app import crud
from app.core.config import settings
from app.models import User, UserRegister

PASSWORD = "correct-horse-battery"

VALID_SELECTIONS = {
    "material_9": {"colorHex": "#111317", "finish": "GLOSS", "patternId": "NONE"},
    "material_3": {"colorHex": "#1A2330", "finish": "GLOSS", "patternId": "NONE"},
}


def make_user(session: Session, email: str = "owner@example.com") -> User:
    return crud.create_user(
        session=session,
        user_create=UserRegister(email=email, password=PASSWORD),
    )


def auth_headers(client: TestClient, email: str, password: str = PASSWORD) -> dict[str, str]:
    response = client.post(
        f"{settings.API_V1_STR}/login/access-token",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
