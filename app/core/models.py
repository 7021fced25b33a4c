from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from flask_login import UserMixin
from sqlalchemy import CheckConstraint, Enum as SAEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from app.core.errors import ValidationError
from app.core.extensions import db
from app.core.turnaround import (
    INSURANCE_EXPECTED_DAYS,
    VERIFICATION_EXPECTED_DAYS,
    TurnaroundStatus,
    derive,
)
from app.core.utils import money_str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def _status_column() -> SAEnum:
    return SAEnum(
        TurnaroundStatus,
        name="turnaround_status",
        native_enum=False,
        length=30,
        values_callable=lambda enum: [member.value for member in enum],
    )


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(default=False, nullable=False)
    refresh_token_hash: Mapped[str | None] = mapped_column(db.String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    @validates("email")
    def normalize_email(self, _key, value: str) -> str:
        return (value or "").strip().lower()

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_safe_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "verified": self.verified,
            "created_at": _iso(self.created_at),
        }


class VerificationCode(db.Model):
    # One live code per email; re-issuing overwrites the row.
    __tablename__ = "verification_codes"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(db.String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    used: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class PasswordResetToken(db.Model):
    __tablename__ = "password_resets"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    token: Mapped[str] = mapped_column(db.String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    used: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class TurnaroundRecordMixin:
    """Shared behaviour of the two tracked record types.

    ``turn_around_time`` and the status column are owned by
    :meth:`refresh_turnaround`; services call it before every flush.
    """

    status_field = "case_status"
    default_expected_days = INSURANCE_EXPECTED_DAYS

    @property
    def status(self) -> TurnaroundStatus:
        return getattr(self, self.status_field)

    def refresh_turnaround(self) -> None:
        if self.expected_days is None:
            self.expected_days = self.default_expected_days
        if self.date_received and self.date_closed and self.date_closed < self.date_received:
            raise ValidationError("date_closed cannot be earlier than date_received")
        turn_around_time, status = derive(self.date_received, self.date_closed, self.expected_days)
        self.turn_around_time = turn_around_time
        setattr(self, self.status_field, status)

    @validates("expected_days")
    def validate_expected_days(self, _key, value):
        if value is not None and int(value) <= 0:
            raise ValidationError("expected_days must be a positive number of days")
        return value


class InsuranceCase(TurnaroundRecordMixin, db.Model):
    __tablename__ = "insurance_cases"
    __table_args__ = (
        CheckConstraint("expected_days > 0", name="ck_insurance_cases_expected_days"),
        Index("ix_insurance_cases_date_received", "date_received"),
    )

    status_field = "case_status"
    default_expected_days = INSURANCE_EXPECTED_DAYS

    id: Mapped[int] = mapped_column(primary_key=True)
    agent_name: Mapped[str | None] = mapped_column(db.String(120), nullable=True)
    insured_name: Mapped[str | None] = mapped_column(db.String(160), nullable=True)
    country: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    policy_number: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    case_type: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    insurance_company: Mapped[str | None] = mapped_column(db.String(120), nullable=True)
    comment: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    date_received: Mapped[date | None] = mapped_column(nullable=True)
    date_closed: Mapped[date | None] = mapped_column(nullable=True)
    turn_around_time: Mapped[int] = mapped_column(default=0, nullable=False)
    case_status: Mapped[TurnaroundStatus] = mapped_column(
        _status_column(),
        nullable=False,
        default=TurnaroundStatus.PENDING,
    )
    expected_days: Mapped[int] = mapped_column(default=INSURANCE_EXPECTED_DAYS, nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    amount_paid: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    is_fraud: Mapped[bool] = mapped_column(default=False, nullable=False)
    fraud_type: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    fraud_source: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    def refresh_turnaround(self) -> None:
        super().refresh_turnaround()
        if not self.is_fraud:
            self.fraud_type = None
            self.fraud_source = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "agent_name": self.agent_name,
            "insured_name": self.insured_name,
            "country": self.country,
            "policy_number": self.policy_number,
            "case_type": self.case_type,
            "insurance_company": self.insurance_company,
            "comment": self.comment,
            "date_received": _iso(self.date_received),
            "date_closed": _iso(self.date_closed),
            "turn_around_time": self.turn_around_time,
            "case_status": self.case_status.value if self.case_status else None,
            "expected_days": self.expected_days,
            "processing_fee": money_str(self.processing_fee),
            "amount_paid": money_str(self.amount_paid),
            "is_fraud": self.is_fraud,
            "fraud_type": self.fraud_type,
            "fraud_source": self.fraud_source,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class DocumentVerification(TurnaroundRecordMixin, db.Model):
    __tablename__ = "document_verifications"
    __table_args__ = (
        CheckConstraint("expected_days > 0", name="ck_document_verifications_expected_days"),
        Index("ix_document_verifications_date_received", "date_received"),
    )

    status_field = "turn_around_status"
    default_expected_days = VERIFICATION_EXPECTED_DAYS

    id: Mapped[int] = mapped_column(primary_key=True)
    agent_name: Mapped[str | None] = mapped_column(db.String(120), nullable=True)
    applicant_name: Mapped[str | None] = mapped_column(db.String(160), nullable=True)
    document_type: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    country: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    region_town: Mapped[str | None] = mapped_column(db.String(120), nullable=True)
    ars_number: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    check_id: Mapped[str | None] = mapped_column(db.String(80), nullable=True)
    date_received: Mapped[date | None] = mapped_column(nullable=True)
    date_closed: Mapped[date | None] = mapped_column(nullable=True)
    turn_around_time: Mapped[int] = mapped_column(default=0, nullable=False)
    turn_around_status: Mapped[TurnaroundStatus] = mapped_column(
        _status_column(),
        nullable=False,
        default=TurnaroundStatus.PENDING,
    )
    expected_days: Mapped[int] = mapped_column(default=VERIFICATION_EXPECTED_DAYS, nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    amount_paid: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    payment_status: Mapped[str | None] = mapped_column(db.String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    @validates("payment_status")
    def normalize_payment_status(self, _key, value: str | None) -> str | None:
        raw = (value or "").strip().upper()
        return raw or None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "agent_name": self.agent_name,
            "applicant_name": self.applicant_name,
            "document_type": self.document_type,
            "country": self.country,
            "region_town": self.region_town,
            "ars_number": self.ars_number,
            "check_id": self.check_id,
            "date_received": _iso(self.date_received),
            "date_closed": _iso(self.date_closed),
            "turn_around_time": self.turn_around_time,
            "turn_around_status": self.turn_around_status.value if self.turn_around_status else None,
            "expected_days": self.expected_days,
            "processing_fee": money_str(self.processing_fee),
            "amount_paid": money_str(self.amount_paid),
            "total": money_str(self.total),
            "payment_status": self.payment_status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


def seed_demo_data(session) -> None:
    admin = User(full_name="Demo Admin", email="admin@example.com", verified=True)
    admin.set_password("admin123")
    session.add(admin)

    cases = [
        InsuranceCase(
            agent_name="Grace Mensah",
            insured_name="Kwame Boateng",
            country="Ghana",
            policy_number="POL-1001",
            case_type="Death claim",
            insurance_company="Star Assurance",
            date_received=date(2024, 1, 15),
            date_closed=date(2024, 1, 22),
            processing_fee=Decimal("150.00"),
            amount_paid=Decimal("50.00"),
        ),
        InsuranceCase(
            agent_name="Grace Mensah",
            insured_name="Ama Owusu",
            country="Ghana",
            policy_number="POL-1002",
            case_type="Medical claim",
            insurance_company="Star Assurance",
            date_received=date(2024, 1, 15),
            date_closed=date(2024, 1, 25),
            is_fraud=True,
            fraud_type="Forged document",
            fraud_source="Hospital",
            processing_fee=Decimal("200.00"),
            amount_paid=Decimal("75.50"),
        ),
        InsuranceCase(
            agent_name="Peter Okafor",
            insured_name="Chidi Eze",
            country="Nigeria",
            policy_number="POL-2001",
            case_type="Death claim",
            insurance_company="Leadway",
            date_received=date(2024, 2, 1),
            processing_fee=Decimal("120.00"),
        ),
    ]
    verifications = [
        DocumentVerification(
            agent_name="Grace Mensah",
            applicant_name="Yaw Asante",
            document_type="Birth certificate",
            country="Ghana",
            region_town="Kumasi",
            ars_number="ARS-001",
            check_id="CHK-001",
            date_received=date(2024, 1, 10),
            date_closed=date(2024, 1, 13),
            processing_fee=Decimal("80.00"),
            amount_paid=Decimal("30.00"),
            total=Decimal("110.00"),
            payment_status="PAID",
        ),
        DocumentVerification(
            agent_name="Peter Okafor",
            applicant_name="Ngozi Ade",
            document_type="Degree certificate",
            country="Nigeria",
            region_town="Lagos",
            ars_number="ARS-002",
            check_id="CHK-002",
            date_received=date(2024, 1, 20),
            processing_fee=Decimal("95.00"),
            amount_paid=Decimal("0.00"),
            total=Decimal("95.00"),
            payment_status="UNPAID",
        ),
    ]
    for record in [*cases, *verifications]:
        record.refresh_turnaround()
    session.add_all([*cases, *verifications])
    session.commit()
