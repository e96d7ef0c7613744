from app.core.config import settings
from app.tests.utils import auth_headers

API = settings.API_V1_STR


def test_register_and_login_with_json(client):
    response = client.post(
        f"{API}/auth/register",
        json={"email": "  New.Driver@Example.com ", "password": "  long-enough  "},
    )
    assert response.status_code == 201, response.text
    assert response.json()["email"] == "new.driver@example.com"

    login = client.post(
        f"{API}/auth/login",
        json={"email": "NEW.DRIVER@example.com", "password": "long-enough"},
    )
    assert login.status_code == 200, login.text
    token = login.json()["access_token"]

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new.driver@example.com"


def test_duplicate_registration_conflicts(client, owner):
    response = client.post(
        f"{API}/users/signup",
        json={"email": "OWNER@example.com", "password": "another-password"},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "EMAIL_ALREADY_REGISTERED"


def test_register_validates_input(client):
    assert client.post(f"{API}/auth/register", json={"email": "nope", "password": "long-enough"}).status_code == 422
    assert client.post(f"{API}/auth/register", json={"email": "a@example.com", "password": "short"}).status_code == 422


def test_bad_credentials(client, owner):
    response = client.post(
        f"{API}/auth/login", json={"email": "owner@example.com", "password": "wrong-password"}
    )
    assert response.status_code == 401


def test_form_login_and_me(client, owner):
    headers = auth_headers(client, "owner@example.com")
    response = client.get(f"{API}/users/me", headers=headers)
    assert response.json()["id"] == str(owner.id)


def test_me_requires_a_valid_token(client):
    assert client.get(f"{API}/users/me").status_code == 401
    assert client.get(f"{API}/users/me", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_login_does_not_trim_the_password(client):
    client.post(
        f"{API}/auth/register", json={"email": "trim@example.com", "password": "  long-enough  "}
    )

    padded = client.post(
        f"{API}/auth/login", json={"email": "trim@example.com", "password": "  long-enough  "}
    )
    assert padded.status_code == 401
    exact = client.post(
        f"{API}/auth/login", json={"email": "trim@example.com", "password": "long-enough"}
    )
    assert exact.status_code == 200
