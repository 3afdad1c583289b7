from src.core.accounts.sessions import SESSION_COOKIE_NAME
from tests.factories import ADMIN_EMAIL, ADMIN_PASSWORD, signup_admin


def _login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_signup_creates_account_and_session(client):
    response = client.post(
        "/api/auth/signup",
        json={
            "email": "  Owner@Noviq.Example ",
            "password": "s3cret-pass",
            "first_name": "Grace",
            "last_name": "Hopper",
        },
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "owner@noviq.example"
    assert "password_hash" not in user
    assert "password" not in user
    set_cookie = response.headers["set-cookie"]
    assert SESSION_COOKIE_NAME in set_cookie
    assert "httponly" in set_cookie.lower()
    assert "samesite=lax" in set_cookie.lower()

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user["id"]


def test_signup_with_existing_email_conflicts(client):
    signup_admin(client)

    response = client.post(
        "/api/auth/signup",
        json={"email": ADMIN_EMAIL.upper(), "password": "another-password"},
    )

    assert response.status_code == 409
    assert response.json() == {"message": "ACCOUNT_ALREADY_EXISTS"}


def test_signup_rejects_missing_email(client):
    response = client.post("/api/auth/signup", json={"password": "s3cret-pass"})

    assert response.status_code == 400
    assert response.json()["field"] == "email"


def test_signup_rejects_blank_email(client):
    response = client.post("/api/auth/signup", json={"email": "   ", "password": "s3cret-pass"})

    assert response.status_code == 400
    assert response.json() == {"message": "EMAIL_REQUIRED", "field": "email"}


def test_login_with_valid_credentials(client):
    signup_admin(client)
    client.post("/api/auth/logout")

    response = _login(client)

    assert response.status_code == 200
    assert response.json()["user"]["email"] == ADMIN_EMAIL
    assert client.get("/api/auth/me").status_code == 200


def test_login_failures_are_indistinguishable(client):
    signup_admin(client)
    client.post("/api/auth/logout")

    wrong_password = _login(client, password="nope")
    unknown_email = _login(client, email="ghost@noviq.example")

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"message": "INVALID_CREDENTIALS"}


def test_me_without_session_is_unauthorized(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"message": "AUTHENTICATION_REQUIRED"}


def test_me_with_forged_cookie_is_unauthorized(client):
    client.cookies.set(SESSION_COOKIE_NAME, "forged-token")

    assert client.get("/api/auth/me").status_code == 401


def test_logout_revokes_the_server_side_session(client):
    signup_admin(client)
    token = client.cookies.get(SESSION_COOKIE_NAME)
    assert token

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}
    assert client.get("/api/auth/me").status_code == 401

    # Replaying the old cookie does not bring the session back.
    client.cookies.set(SESSION_COOKIE_NAME, token)
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/proposals").status_code == 401


def test_logout_without_session_still_succeeds(client):
    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}
