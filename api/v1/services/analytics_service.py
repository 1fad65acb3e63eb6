import calendar
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.services.transaction_service import build_filters
from api.v1.utils.helpers import (
    month_start,
    round_half_ceiling,
    round_half_up,
    shift_month,
    to_utc,
    utcnow,
)
from api.v1.utils.logger import get_logger

logger = get_logger("analytics_service")

MAX_SERIES_MONTHS = 12
ZERO = Decimal("0")


def _decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def percentage_change(current, previous) -> Decimal:
    """
    Percent change from ``previous`` to ``current``.

    A zero baseline reports exactly 100 rather than dividing by zero.
    """
    current, previous = _decimal(current), _decimal(previous)
    if previous == 0:
        return Decimal(100)
    return (current - previous) / previous * 100


def balance_change(current, previous) -> Decimal:
    """
    Percent change of a balance, which may be negative.

    Divides by ``abs(previous)`` so that moving from -100 to -50 reads as
    +50%, not -50%.
    """
    current, previous = _decimal(current), _decimal(previous)
    if previous == 0:
        return Decimal(100)
    return (current - previous) / abs(previous) * 100


class AnalyticsService:
    def __init__(self):
        pass

    def _period_totals(
        self, user_id: str, start: datetime, end: datetime, db: Session
    ) -> dict:
        rows = db.execute(
            select(
                Transaction.type,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .where(
                Transaction.user_id == user_id,
                Transaction.date >= start,
                Transaction.date < end,
            )
            .group_by(Transaction.type)
        ).all()

        totals = {"credits": ZERO, "debits": ZERO, "count": 0}
        for transaction_type, amount, count in rows:
            key = "credits" if transaction_type == TransactionType.CREDIT else "debits"
            totals[key] += _decimal(amount)
            totals["count"] += count

        totals["balance"] = totals["credits"] - totals["debits"]
        return totals

    def period_stats(
        self, user_id: str, db: Session, now: Optional[datetime] = None
    ) -> dict:
        """
        Compare the current calendar month (UTC) with the one before it.

        Changes are whole percentages, rounded half up.
        """
        now = to_utc(now or utcnow())
        current_start = month_start(now.year, now.month)
        next_start = month_start(*shift_month(now.year, now.month, 1))
        previous_start = month_start(*shift_month(now.year, now.month, -1))

        current = self._period_totals(user_id, current_start, next_start, db)
        previous = self._period_totals(user_id, previous_start, current_start, db)

        return {
            "totalCredits": {
                "value": current["credits"],
                "change": round_half_ceiling(
                    percentage_change(current["credits"], previous["credits"])
                ),
            },
            "totalDebits": {
                "value": current["debits"],
                "change": round_half_ceiling(
                    percentage_change(current["debits"], previous["debits"])
                ),
            },
            "balance": {
                "value": current["balance"],
                "change": round_half_ceiling(
                    balance_change(current["balance"], previous["balance"])
                ),
            },
            "transactionCount": current["count"],
            "period": {
                "current": {"start": current_start, "end": now},
                "previous": {"start": previous_start, "end": current_start},
            },
        }

    def monthly_series(
        self,
        user_id: str,
        db: Session,
        months: int = 6,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """One point per calendar month, oldest first, ending with the current month."""
        now = to_utc(now or utcnow())
        months = max(1, min(months, MAX_SERIES_MONTHS))

        buckets = []
        for offset in range(months - 1, -1, -1):
            year, month = shift_month(now.year, now.month, -offset)
            buckets.append(
                {
                    "name": calendar.month_abbr[month],
                    "month": month,
                    "year": year,
                    "credits": ZERO,
                    "debits": ZERO,
                    "balance": ZERO,
                    "transactionCount": 0,
                }
            )

        first = buckets[0]
        range_start = month_start(first["year"], first["month"])
        range_end = month_start(*shift_month(now.year, now.month, 1))

        rows = db.execute(
            select(Transaction.date, Transaction.type, Transaction.amount).where(
                Transaction.user_id == user_id,
                Transaction.date >= range_start,
                Transaction.date < range_end,
            )
        ).all()

        index = {(bucket["year"], bucket["month"]): bucket for bucket in buckets}
        for date, transaction_type, amount in rows:
            date = to_utc(date)
            bucket = index.get((date.year, date.month))
            if bucket is None:
                continue
            if transaction_type == TransactionType.CREDIT:
                bucket["credits"] += _decimal(amount)
            else:
                bucket["debits"] += _decimal(amount)
            bucket["transactionCount"] += 1

        for bucket in buckets:
            bucket["balance"] = bucket["credits"] - bucket["debits"]

        return buckets

    def category_breakdown(
        self,
        user_id: str,
        db: Session,
        transaction_type: Optional[TransactionType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[dict]:
        """Totals per category, largest first; averages rounded to cents."""
        filters = build_filters(
            user_id,
            transaction_type=transaction_type,
            start_date=start_date,
            end_date=end_date,
        )

        rows = db.execute(
            select(
                Transaction.category,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .where(*filters)
            .group_by(Transaction.category)
        ).all()

        breakdown = []
        for category, total, count in rows:
            total = _decimal(total)
            breakdown.append(
                {
                    "category": category,
                    "totalAmount": total,
                    "transactionCount": count,
                    "avgAmount": round_half_up(total / count, 2),
                }
            )

        breakdown.sort(key=lambda item: item["category"])
        breakdown.sort(key=lambda item: item["totalAmount"], reverse=True)
        return breakdown


analytics_service = AnalyticsService()
