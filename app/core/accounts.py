from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    AuthenticationError,
    ConflictError,
    DeliveryError,
    NotFoundError,
    ValidationError,
)
from app.core.extensions import db
from app.core.mail import get_mailer, password_reset_email, verification_code_email
from app.core.models import PasswordResetToken, User, VerificationCode, utcnow
from app.core.tokens import REFRESH, decode_token, make_access_token, make_refresh_token, token_digest

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _validate_email(email: str) -> str:
    normalized = _normalize_email(email)
    if not EMAIL_RE.match(normalized):
        raise ValidationError("Invalid email format")
    return normalized


def _validate_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def find_user_by_email(email: str) -> User | None:
    return User.query.filter_by(email=_normalize_email(email)).first()


def _issue_verification_code(email: str) -> VerificationCode:
    ttl = current_app.config["VERIFICATION_CODE_TTL_MIN"]
    record = VerificationCode.query.filter_by(email=email).first()
    if record is None:
        record = VerificationCode(email=email)
        db.session.add(record)
    record.code = f"{secrets.randbelow(900000) + 100000}"
    record.expires_at = utcnow() + timedelta(minutes=ttl)
    record.used = False
    record.created_at = utcnow()
    return record


def _send_verification_code(user: User, code: str) -> bool:
    subject, text, html = verification_code_email(user.full_name, code)
    return get_mailer().send(user.email, subject, text, html)


def signup(full_name: str, email: str, password: str) -> User:
    full_name = (full_name or "").strip()
    if not full_name or not email or not password:
        raise ValidationError("Full name, email and password are required")
    normalized = _validate_email(email)
    _validate_password(password)
    if find_user_by_email(normalized):
        raise ConflictError("User with this email already exists")

    user = User(full_name=full_name, email=normalized, verified=False)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("User with this email already exists") from exc
    record = _issue_verification_code(normalized)
    db.session.commit()

    if not _send_verification_code(user, record.code):
        current_app.logger.warning("Verification email for %s not delivered; user can request a resend", normalized)
    current_app.logger.info("Account created for %s", normalized)
    return user


def resend_verification(email: str) -> User:
    if not email:
        raise ValidationError("Email is required")
    user = find_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found")
    if user.verified:
        raise ValidationError("Account is already verified")
    record = _issue_verification_code(user.email)
    db.session.commit()
    if not _send_verification_code(user, record.code):
        raise DeliveryError("Failed to send verification email")
    return user


def verify_email(email: str, code: str) -> User:
    if not email or not code:
        raise ValidationError("Email and verification code are required")
    normalized = _normalize_email(email)
    user = find_user_by_email(normalized)
    if user is None:
        raise NotFoundError("User not found")
    try:
        record = VerificationCode.query.filter_by(email=normalized, code=str(code).strip(), used=False).first()
        if record is None or _as_utc(record.expires_at) <= utcnow():
            raise ValidationError("Invalid or expired verification code")
        record.used = True
        user.verified = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("Email verified for %s", normalized)
    return user


def _issue_session(user: User) -> dict[str, object]:
    access_token = make_access_token(user)
    refresh_token = make_refresh_token(user)
    user.refresh_token_hash = token_digest(refresh_token)
    db.session.commit()
    return {
        "user": user.to_safe_dict(),
        "tokens": {"accessToken": access_token, "refreshToken": refresh_token},
    }


def login(email: str, password: str) -> dict[str, object]:
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = find_user_by_email(email)
    if user is None or not user.check_password(password):
        raise AuthenticationError("Invalid email or password")
    if not user.verified:
        raise AuthenticationError(
            "Please verify your email address first",
            requires_verification=True,
            email=user.email,
        )
    current_app.logger.info("User %s logged in", user.id)
    return _issue_session(user)


def refresh_session(refresh_token: str) -> dict[str, object]:
    if not refresh_token:
        raise ValidationError("Refresh token is required")
    payload = decode_token(refresh_token, REFRESH)
    user = db.session.get(User, int(payload["uid"]))
    if user is None or user.refresh_token_hash != token_digest(refresh_token):
        raise AuthenticationError("Invalid refresh token")
    session = _issue_session(user)
    return {"tokens": session["tokens"]}


def logout(user: User) -> None:
    user.refresh_token_hash = None
    db.session.commit()


def forgot_password(email: str) -> None:
    if not email:
        raise ValidationError("Email is required")
    user = find_user_by_email(email)
    if user is None:
        current_app.logger.info("Password reset requested for unknown email")
        return

    ttl = current_app.config["PASSWORD_RESET_TTL_MIN"]
    record = PasswordResetToken.query.filter_by(email=user.email).first()
    if record is None:
        record = PasswordResetToken(email=user.email)
        db.session.add(record)
    record.token = secrets.token_hex(32)
    record.expires_at = utcnow() + timedelta(minutes=ttl)
    record.used = False
    record.created_at = utcnow()
    db.session.commit()

    reset_link = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/reset-password?token={record.token}"
    subject, text, html = password_reset_email(user.full_name, reset_link)
    if not get_mailer().send(user.email, subject, text, html):
        current_app.logger.warning("Password reset email for user %s not delivered", user.id)


def reset_password(token: str, new_password: str) -> User:
    if not token or not new_password:
        raise ValidationError("Token and new password are required")
    _validate_password(new_password)
    try:
        record = PasswordResetToken.query.filter_by(token=token, used=False).first()
        if record is None or _as_utc(record.expires_at) <= utcnow():
            raise ValidationError("Invalid or expired reset token")
        user = find_user_by_email(record.email)
        if user is None:
            raise NotFoundError("User not found")
        user.set_password(new_password)
        user.refresh_token_hash = None
        record.used = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("Password reset for user %s", user.id)
    return user


def change_password(user: User, old_password: str, new_password: str) -> User:
    if not old_password or not new_password:
        raise ValidationError("Old password and new password are required")
    if not user.check_password(old_password):
        raise AuthenticationError("Current password is incorrect")
    if old_password == new_password:
        raise ValidationError("New password must be different from current password")
    _validate_password(new_password)
    user.set_password(new_password)
    user.refresh_token_hash = None
    db.session.commit()
    current_app.logger.info("Password changed for user %s", user.id)
    return user


def update_profile(user: User, full_name: str) -> User:
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("Full name is required")
    user.full_name = full_name
    db.session.commit()
    return user


def create_verified_user(full_name: str, email: str, password: str) -> User:
    normalized = _validate_email(email)
    _validate_password(password)
    if find_user_by_email(normalized):
        raise ConflictError("User with this email already exists")
    user = User(full_name=full_name, email=normalized, verified=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user
