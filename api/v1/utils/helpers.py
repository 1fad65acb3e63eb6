from datetime import datetime, timezone
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to an aware UTC value.

    Naive values are treated as UTC; SQLite hands stored timestamps back
    without tzinfo.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move (year, month) by ``offset`` calendar months, negative for the past."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def round_half_ceiling(value: Decimal) -> int:
    """Round to an integer with halves going toward positive infinity (-12.5 -> -12)."""
    return int((Decimal(value) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def page_count(total: int, limit: int) -> int:
    return -(-total // limit)


def pagination_block(page: int, limit: int, total: int, total_key: str) -> dict:
    total_pages = page_count(total, limit)
    return {
        "currentPage": page,
        "totalPages": total_pages,
        total_key: total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }
