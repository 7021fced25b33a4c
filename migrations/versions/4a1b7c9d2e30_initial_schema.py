"""initial schema: users, tokens, insurance cases and document verifications

Revision ID: 4a1b7c9d2e30
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4a1b7c9d2e30"
down_revision = None
branch_labels = None
depends_on = None

TURNAROUND_STATUSES = ("Pending", "Closed on time", "Closed - exceeded")


def _status_type():
    return sa.Enum(
        *TURNAROUND_STATUSES,
        name="turnaround_status",
        native_enum=False,
        length=30,
        create_constraint=False,
    )


def _record_columns():
    return [
        sa.Column("date_received", sa.Date(), nullable=True),
        sa.Column("date_closed", sa.Date(), nullable=True),
        sa.Column("turn_around_time", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "verification_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=6), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "password_resets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("token"),
    )

    op.create_table(
        "insurance_cases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agent_name", sa.String(length=120), nullable=True),
        sa.Column("insured_name", sa.String(length=160), nullable=True),
        sa.Column("country", sa.String(length=80), nullable=True),
        sa.Column("policy_number", sa.String(length=80), nullable=True),
        sa.Column("case_type", sa.String(length=80), nullable=True),
        sa.Column("insurance_company", sa.String(length=120), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        *_record_columns(),
        sa.Column("case_status", _status_type(), nullable=False, server_default="Pending"),
        sa.Column("expected_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("processing_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_fraud", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fraud_type", sa.String(length=80), nullable=True),
        sa.Column("fraud_source", sa.String(length=80), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("expected_days > 0", name="ck_insurance_cases_expected_days"),
    )
    op.create_index("ix_insurance_cases_date_received", "insurance_cases", ["date_received"])

    op.create_table(
        "document_verifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agent_name", sa.String(length=120), nullable=True),
        sa.Column("applicant_name", sa.String(length=160), nullable=True),
        sa.Column("document_type", sa.String(length=80), nullable=True),
        sa.Column("country", sa.String(length=80), nullable=True),
        sa.Column("region_town", sa.String(length=120), nullable=True),
        sa.Column("ars_number", sa.String(length=80), nullable=True),
        sa.Column("check_id", sa.String(length=80), nullable=True),
        *_record_columns(),
        sa.Column("turn_around_status", _status_type(), nullable=False, server_default="Pending"),
        sa.Column("expected_days", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("processing_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("payment_status", sa.String(length=30), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("expected_days > 0", name="ck_document_verifications_expected_days"),
    )
    op.create_index(
        "ix_document_verifications_date_received",
        "document_verifications",
        ["date_received"],
    )


def downgrade():
    op.drop_index("ix_document_verifications_date_received", table_name="document_verifications")
    op.drop_table("document_verifications")
    op.drop_index("ix_insurance_cases_date_received", table_name="insurance_cases")
    op.drop_table("insurance_cases")
    op.drop_table("password_resets")
    op.drop_table("verification_codes")
    op.drop_table("users")
