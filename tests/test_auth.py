from __future__ import annotations

import re
from datetime import timedelta

from app.core.extensions import db
from app.core.models import PasswordResetToken, User, VerificationCode, utcnow


def _signup(client, email="new.user@example.com", password="secret123"):
    return client.post(
        "/api/auth/signup",
        json={"fullName": "New User", "email": email, "password": password},
    )


def _sent_code(mailer) -> str:
    return re.search(r"verification code is: (\d{6})", mailer.sent[-1]["text"]).group(1)


def _sent_reset_token(mailer) -> str:
    return re.search(r"token=([0-9a-f]+)", mailer.sent[-1]["text"]).group(1)


def test_health_and_index(client):
    assert client.get("/health").get_json()["data"]["status"] == "ok"
    assert "insurance_cases" in client.get("/api").get_json()["data"]["endpoints"]


def test_signup_verify_login_flow(client, mailer, login):
    response = _signup(client)
    assert response.status_code == 201
    assert response.get_json()["data"] == {"email": "new.user@example.com", "verified": False}
    assert mailer.sent[-1]["to"] == "new.user@example.com"

    response = login("new.user@example.com", "secret123")
    body = response.get_json()
    assert response.status_code == 401
    assert body["requires_verification"] is True
    assert body["email"] == "new.user@example.com"

    response = client.post(
        "/api/auth/verify-email",
        json={"email": "new.user@example.com", "code": _sent_code(mailer)},
    )
    assert response.status_code == 200

    response = login("NEW.USER@example.com", "secret123")
    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["user"]["verified"] is True
    assert "password_hash" not in data["user"]
    assert data["tokens"]["accessToken"]
    assert data["tokens"]["refreshToken"]


def test_signup_validation(client):
    assert _signup(client, email="not-an-email").status_code == 400
    assert _signup(client, password="123").status_code == 400
    response = client.post("/api/auth/signup", json={"email": "x@example.com", "password": "secret123"})
    assert response.status_code == 400


def test_duplicate_signup_conflicts(client):
    assert _signup(client).status_code == 201
    response = _signup(client, email="New.User@example.com")
    assert response.status_code == 409
    assert _signup(client, email="admin@example.com").status_code == 409


def test_signup_succeeds_when_mail_fails(client, mailer):
    mailer.fail = True
    assert _signup(client).status_code == 201


def test_wrong_code_and_reused_code_are_rejected(client, mailer):
    _signup(client)
    code = _sent_code(mailer)
    wrong = "000000" if code != "000000" else "111111"
    response = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": wrong})
    assert response.status_code == 400

    ok = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": code})
    assert ok.status_code == 200
    again = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": code})
    assert again.status_code == 400


def test_resend_supersedes_previous_code(client, app, mailer):
    _signup(client)
    first = _sent_code(mailer)
    response = client.post("/api/auth/resend-verification", json={"email": "new.user@example.com"})
    assert response.status_code == 200
    second = _sent_code(mailer)
    with app.app_context():
        assert VerificationCode.query.filter_by(email="new.user@example.com").count() == 1

    if first != second:
        stale = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": first})
        assert stale.status_code == 400
    fresh = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": second})
    assert fresh.status_code == 200


def test_resend_verification_errors(client, mailer):
    assert client.post("/api/auth/resend-verification", json={"email": "ghost@example.com"}).status_code == 404
    assert client.post("/api/auth/resend-verification", json={"email": "admin@example.com"}).status_code == 400

    _signup(client)
    mailer.fail = True
    response = client.post("/api/auth/resend-verification", json={"email": "new.user@example.com"})
    assert response.status_code == 503


def test_expired_code_is_rejected(client, app, mailer):
    _signup(client)
    code = _sent_code(mailer)
    with app.app_context():
        record = VerificationCode.query.filter_by(email="new.user@example.com").one()
        record.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()
    response = client.post("/api/auth/verify-email", json={"email": "new.user@example.com", "code": code})
    assert response.status_code == 400
    with app.app_context():
        assert User.query.filter_by(email="new.user@example.com").one().verified is False


def test_login_rejects_bad_credentials(login):
    assert login("admin@example.com", "wrong-password").status_code == 401
    assert login("nobody@example.com", "admin123").status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, mailer):
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    known = client.post("/api/auth/forgot-password", json={"email": "admin@example.com"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.get_json()["message"] == known.get_json()["message"]
    assert [message["to"] for message in mailer.sent] == ["admin@example.com"]
    assert "http://frontend.test/reset-password?token=" in mailer.sent[-1]["text"]


def test_reset_password_invalidates_refresh_token(client, mailer, login):
    refresh_token = login().get_json()["data"]["tokens"]["refreshToken"]

    client.post("/api/auth/forgot-password", json={"email": "admin@example.com"})
    token = _sent_reset_token(mailer)
    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "changed123"})
    assert response.status_code == 200

    assert client.post("/api/auth/refresh", json={"refreshToken": refresh_token}).status_code == 401
    assert login("admin@example.com", "admin123").status_code == 401
    assert login("admin@example.com", "changed123").status_code == 200

    reused = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another123"})
    assert reused.status_code == 400


def test_reset_password_rejects_expired_token(client, app, mailer):
    client.post("/api/auth/forgot-password", json={"email": "admin@example.com"})
    token = _sent_reset_token(mailer)
    with app.app_context():
        record = PasswordResetToken.query.filter_by(token=token).one()
        record.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()
    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "changed123"})
    assert response.status_code == 400


def test_refresh_rotates_tokens(client, login):
    tokens = login().get_json()["data"]["tokens"]
    response = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    rotated = response.get_json()["data"]["tokens"]
    assert response.status_code == 200
    assert rotated["refreshToken"] != tokens["refreshToken"]

    assert client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401
    assert client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]}).status_code == 401


def test_logout_clears_refresh_token(client, login):
    tokens = login().get_json()["data"]["tokens"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401


def test_profile_read_and_update(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.get_json()["data"]["email"] == "admin@example.com"

    response = client.put("/api/auth/me", json={"fullName": "Renamed Admin"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["data"]["full_name"] == "Renamed Admin"


def test_change_password(client, login):
    tokens = login().get_json()["data"]["tokens"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

    def change(old, new):
        return client.post(
            "/api/auth/change-password",
            json={"oldPassword": old, "newPassword": new},
            headers=headers,
        )

    assert change("wrong-password", "changed123").status_code == 401
    assert change("admin123", "admin123").status_code == 400
    assert change("admin123", "123").status_code == 400

    response = change("admin123", "changed123")
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    assert client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401
    assert login("admin@example.com", "admin123").status_code == 401
    assert login("admin@example.com", "changed123").status_code == 200


def test_change_password_requires_token(client):
    response = client.post(
        "/api/auth/change-password",
        json={"oldPassword": "admin123", "newPassword": "changed123"},
    )
    assert response.status_code == 401
