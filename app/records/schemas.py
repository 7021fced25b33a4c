from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.utils import parse_optional_date, parse_optional_decimal

MONEY = dict(ge=0, max_digits=10, decimal_places=2)


class RecordFields(BaseModel):
    """Client-writable fields shared by both record types.

    Unknown keys, including the derived turnaround fields, are ignored.
    Empty strings are treated as "no value".
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    agent_name: str | None = Field(default=None, max_length=120)
    country: str | None = Field(default=None, max_length=80)
    date_received: date | None = None
    date_closed: date | None = None
    expected_days: int | None = Field(default=None, gt=0)
    processing_fee: Decimal | None = Field(default=None, **MONEY)
    amount_paid: Decimal | None = Field(default=None, **MONEY)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date_received", "date_closed", mode="before")
    @classmethod
    def parse_dates(cls, value, info):
        if isinstance(value, str):
            return parse_optional_date(value, info.field_name)
        return value

    @field_validator("processing_fee", "amount_paid", mode="before")
    @classmethod
    def parse_amounts(cls, value, info):
        if isinstance(value, str):
            return parse_optional_decimal(value, info.field_name)
        return value


class InsuranceCaseFields(RecordFields):
    insured_name: str | None = Field(default=None, max_length=160)
    policy_number: str | None = Field(default=None, max_length=80)
    case_type: str | None = Field(default=None, max_length=80)
    insurance_company: str | None = Field(default=None, max_length=120)
    comment: str | None = None
    is_fraud: bool | None = None
    fraud_type: str | None = Field(default=None, max_length=80)
    fraud_source: str | None = Field(default=None, max_length=80)


class DocumentVerificationFields(RecordFields):
    applicant_name: str | None = Field(default=None, max_length=160)
    document_type: str | None = Field(default=None, max_length=80)
    region_town: str | None = Field(default=None, max_length=120)
    ars_number: str | None = Field(default=None, max_length=80)
    check_id: str | None = Field(default=None, max_length=80)
    total: Decimal | None = Field(default=None, **MONEY)
    payment_status: str | None = Field(default=None, max_length=30)

    @field_validator("total", mode="before")
    @classmethod
    def parse_total(cls, value, info):
        if isinstance(value, str):
            return parse_optional_decimal(value, info.field_name)
        return value
