from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.core.errors import ValidationError

CENT = Decimal("0.01")
US_DATE_FORMAT = "%m/%d/%Y"


def money(value: Decimal | float | int | str | None) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Decimal | float | int | None) -> str:
    return f"{money(value):.2f}"


def percentage(part: int | Decimal, whole: int | Decimal) -> float:
    if not whole:
        return 0.0
    ratio = Decimal(part) * 100 / Decimal(whole)
    return float(ratio.quantize(CENT, rounding=ROUND_HALF_UP))


def round2(value: float | Decimal | None) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def parse_optional_date(value: str | date | None, field_name: str) -> date | None:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored) or ``MM/DD/YYYY``.

    Day-first slash dates are not accepted: ``03/04/2024`` is March 4th.
    """
    if value is None or isinstance(value, date):
        return value
    raw = value.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        pass
    try:
        return datetime.strptime(raw, US_DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError(
            f"Invalid date format for {field_name} (expected YYYY-MM-DD or MM/DD/YYYY)"
        ) from exc


def parse_optional_decimal(value: str | None, field_name: str) -> Decimal | None:
    raw = (value or "").strip().replace(",", "")
    if not raw:
        return None
    try:
        return money(raw)
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount for {field_name}") from exc
