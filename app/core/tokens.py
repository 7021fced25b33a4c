from __future__ import annotations

import hashlib
import uuid
from datetime import timedelta

import jwt
from flask import Flask, current_app, request

from app.core.errors import AuthenticationError, error_envelope
from app.core.extensions import db, login_manager
from app.core.models import User, utcnow

ISSUER = "emi-verify"
ACCESS = "access"
REFRESH = "refresh"


def _encode(user: User, token_type: str, lifetime: timedelta) -> str:
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "uid": user.id,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        "iss": ISSUER,
        # Distinguishes tokens minted within the same second.
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")


def make_access_token(user: User) -> str:
    return _encode(user, ACCESS, timedelta(minutes=current_app.config["JWT_ACCESS_TTL_MIN"]))


def make_refresh_token(user: User) -> str:
    return _encode(user, REFRESH, timedelta(days=current_app.config["JWT_REFRESH_TTL_DAYS"]))


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def decode_token(token: str, expected_type: str) -> dict[str, object]:
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=["HS256"],
            issuer=ISSUER,
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc
    if payload.get("type") != expected_type:
        raise AuthenticationError("Invalid token")
    return payload


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def init_token_auth(app: Flask) -> None:
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(_request) -> User | None:
        token = bearer_token()
        if not token:
            return None
        try:
            payload = decode_token(token, ACCESS)
        except AuthenticationError as exc:
            current_app.logger.info("Rejected access token: %s", exc)
            return None
        user = db.session.get(User, int(payload["uid"]))
        if user is None or not user.verified:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        if bearer_token():
            return error_envelope("Invalid or expired access token", 401)
        return error_envelope("Access token required", 401)
