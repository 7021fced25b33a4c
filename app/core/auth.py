from __future__ import annotations

from flask import Blueprint
from flask_login import current_user, login_required
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core import accounts
from app.core.errors import envelope, parse_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


class AuthSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SignupRequest(AuthSchema):
    full_name: str = Field(alias="fullName", min_length=1, max_length=120)
    email: EmailStr
    password: str


class LoginRequest(AuthSchema):
    email: str
    password: str


class VerifyEmailRequest(AuthSchema):
    email: str
    code: str


class EmailRequest(AuthSchema):
    email: str


class ResetPasswordRequest(AuthSchema):
    token: str
    new_password: str = Field(alias="newPassword")


class ChangePasswordRequest(AuthSchema):
    old_password: str = Field(alias="oldPassword")
    new_password: str = Field(alias="newPassword")


class RefreshRequest(AuthSchema):
    refresh_token: str = Field(alias="refreshToken")


class ProfileRequest(AuthSchema):
    full_name: str = Field(alias="fullName", min_length=1, max_length=120)


@auth_bp.post("/signup")
def signup():
    body = parse_body(SignupRequest)
    user = accounts.signup(body.full_name, body.email, body.password)
    return envelope(
        {"email": user.email, "verified": user.verified},
        "Account created successfully. Please check your email for the verification code.",
        201,
    )


@auth_bp.post("/verify-email")
def verify_email():
    body = parse_body(VerifyEmailRequest)
    user = accounts.verify_email(body.email, body.code)
    return envelope(
        {"email": user.email, "verified": True},
        "Email verified successfully. You can now log in.",
    )


@auth_bp.post("/resend-verification")
def resend_verification():
    body = parse_body(EmailRequest)
    user = accounts.resend_verification(body.email)
    return envelope({"email": user.email}, "Verification code sent successfully. Please check your email.")


@auth_bp.post("/login")
def login():
    body = parse_body(LoginRequest)
    session = accounts.login(body.email, body.password)
    return envelope(session, "Login successful")


@auth_bp.post("/refresh")
def refresh():
    body = parse_body(RefreshRequest)
    return envelope(accounts.refresh_session(body.refresh_token))


@auth_bp.post("/logout")
@login_required
def logout():
    accounts.logout(current_user)
    return envelope(message="Logged out successfully")


@auth_bp.post("/forgot-password")
def forgot_password():
    body = parse_body(EmailRequest)
    accounts.forgot_password(body.email)
    return envelope({"email": body.email}, accounts.FORGOT_PASSWORD_MESSAGE)


@auth_bp.post("/reset-password")
def reset_password():
    body = parse_body(ResetPasswordRequest)
    user = accounts.reset_password(body.token, body.new_password)
    return envelope(
        {"email": user.email},
        "Password reset successfully. Please log in with your new password.",
    )


@auth_bp.post("/change-password")
@login_required
def change_password():
    body = parse_body(ChangePasswordRequest)
    accounts.change_password(current_user, body.old_password, body.new_password)
    return envelope(message="Password changed successfully. Please log in again.")


@auth_bp.get("/me")
@login_required
def me():
    return envelope(current_user.to_safe_dict())


@auth_bp.put("/me")
@login_required
def update_me():
    body = parse_body(ProfileRequest)
    user = accounts.update_profile(current_user, body.full_name)
    return envelope(user.to_safe_dict(), "Profile updated successfully")
