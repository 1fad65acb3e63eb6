"""Tests for the aggregation helpers, the analytics service and its endpoints."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from api.v1.models.transaction import Transaction, TransactionType
from api.v1.models.user import User
from api.v1.models.verification import Verified
from api.v1.services.analytics_service import (
    analytics_service,
    balance_change,
    percentage_change,
)
from conftest import API

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user(db):
    user = User(full_name="Alice", email="alice@x.com", pin_hash="$argon2id$stub")
    user.verification = Verified()
    db.add(user)
    db.commit()
    return user


def add(db, user, amount, transaction_type, date, category="General"):
    db.add(
        Transaction(
            user_id=user.id,
            title=f"{category} {amount}",
            amount=Decimal(amount),
            type=transaction_type,
            category=category,
            date=date,
        )
    )
    db.commit()


def at(year, month, day=10):
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


class TestPercentageChange:
    def test_zero_baseline_is_one_hundred(self):
        assert percentage_change(150, 0) == 100
        assert percentage_change(0, 0) == 100

    def test_regular_change(self):
        assert percentage_change(120, 100) == 20
        assert percentage_change(50, 100) == -50

    def test_balance_uses_absolute_baseline(self):
        assert balance_change(-50, -100) == 50
        assert balance_change(-150, -100) == -50
        assert balance_change(100, -100) == 200
        assert balance_change(5, 0) == 100


class TestPeriodStats:
    def test_compares_current_and_previous_month(self, db, user):
        add(db, user, "150", TransactionType.CREDIT, at(2026, 3))
        add(db, user, "50", TransactionType.DEBIT, at(2026, 3, 1))
        add(db, user, "100", TransactionType.DEBIT, at(2026, 2, 28))
        add(db, user, "999", TransactionType.CREDIT, at(2026, 1))

        stats = analytics_service.period_stats(user.id, db, now=NOW)

        assert stats["totalCredits"] == {"value": Decimal("150"), "change": 100}
        assert stats["totalDebits"] == {"value": Decimal("50"), "change": -50}
        assert stats["balance"] == {"value": Decimal("100"), "change": 200}
        assert stats["transactionCount"] == 2
        assert stats["period"]["current"]["start"] == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert stats["period"]["previous"]["start"] == datetime(2026, 2, 1, tzinfo=timezone.utc)

    def test_changes_round_half_up(self, db, user):
        add(db, user, "8", TransactionType.CREDIT, at(2026, 2))
        add(db, user, "8.2", TransactionType.CREDIT, at(2026, 3))

        stats = analytics_service.period_stats(user.id, db, now=NOW)

        assert stats["totalCredits"]["change"] == 3

    def test_negative_half_changes_round_toward_zero(self, db, user):
        add(db, user, "100", TransactionType.CREDIT, at(2026, 2))
        add(db, user, "87.5", TransactionType.CREDIT, at(2026, 3))

        stats = analytics_service.period_stats(user.id, db, now=NOW)

        assert stats["totalCredits"]["change"] == -12

    def test_empty_ledger(self, db, user):
        stats = analytics_service.period_stats(user.id, db, now=NOW)

        assert stats["totalCredits"] == {"value": 0, "change": 100}
        assert stats["balance"] == {"value": 0, "change": 100}
        assert stats["transactionCount"] == 0


class TestMonthlySeries:
    def test_oldest_first_ending_this_month(self, db, user):
        add(db, user, "10", TransactionType.CREDIT, at(2026, 1))
        add(db, user, "4", TransactionType.DEBIT, at(2026, 1))
        add(db, user, "7", TransactionType.DEBIT, at(2026, 3))

        series = analytics_service.monthly_series(user.id, db, months=3, now=NOW)

        assert [(p["year"], p["month"], p["name"]) for p in series] == [
            (2026, 1, "Jan"),
            (2026, 2, "Feb"),
            (2026, 3, "Mar"),
        ]
        assert series[0]["credits"] == 10
        assert series[0]["debits"] == 4
        assert series[0]["balance"] == 6
        assert series[0]["transactionCount"] == 2
        assert series[1]["transactionCount"] == 0
        assert series[2]["balance"] == -7

    def test_crosses_year_boundary(self, db, user):
        add(db, user, "20", TransactionType.CREDIT, at(2025, 12))

        series = analytics_service.monthly_series(
            user.id, db, months=3, now=datetime(2026, 1, 5, tzinfo=timezone.utc)
        )

        assert [(p["year"], p["month"]) for p in series] == [
            (2025, 11),
            (2025, 12),
            (2026, 1),
        ]
        assert series[1]["credits"] == 20

    def test_capped_at_twelve_months(self, db, user):
        series = analytics_service.monthly_series(user.id, db, months=36, now=NOW)

        assert len(series) == 12
        assert (series[0]["year"], series[0]["month"]) == (2025, 4)
        assert (series[-1]["year"], series[-1]["month"]) == (2026, 3)

    def test_exactly_n_points(self, db, user):
        for months in (1, 6, 12):
            assert len(analytics_service.monthly_series(user.id, db, months=months, now=NOW)) == months


class TestCategoryBreakdown:
    def test_sorted_by_total_with_rounded_average(self, db, user):
        add(db, user, "1.00", TransactionType.DEBIT, at(2026, 3), "Snacks")
        add(db, user, "1.00", TransactionType.DEBIT, at(2026, 3), "Snacks")
        add(db, user, "1.01", TransactionType.DEBIT, at(2026, 3), "Snacks")
        add(db, user, "0.01", TransactionType.DEBIT, at(2026, 3), "Tips")
        add(db, user, "0.02", TransactionType.DEBIT, at(2026, 3), "Tips")
        add(db, user, "40", TransactionType.DEBIT, at(2026, 3), "Rent")

        breakdown = analytics_service.category_breakdown(user.id, db)

        assert [item["category"] for item in breakdown] == ["Rent", "Snacks", "Tips"]
        snacks = breakdown[1]
        assert snacks["totalAmount"] == Decimal("3.01")
        assert snacks["transactionCount"] == 3
        assert snacks["avgAmount"] == Decimal("1.00")
        assert breakdown[2]["avgAmount"] == Decimal("0.02")

    def test_filters_by_type_and_date(self, db, user):
        add(db, user, "100", TransactionType.CREDIT, at(2026, 3), "Salary")
        add(db, user, "30", TransactionType.DEBIT, at(2026, 3), "Food")
        add(db, user, "70", TransactionType.DEBIT, at(2026, 1), "Food")

        debits = analytics_service.category_breakdown(
            user.id, db, transaction_type=TransactionType.DEBIT
        )
        recent = analytics_service.category_breakdown(
            user.id, db, start_date=datetime(2026, 3, 1, tzinfo=timezone.utc)
        )

        assert [(i["category"], i["totalAmount"]) for i in debits] == [("Food", Decimal("100"))]
        assert [i["category"] for i in recent] == ["Salary", "Food"]


class TestAnalyticsEndpoints:
    def test_monthly_includes_new_debit(self, client, alice):
        client.post(
            f"{API}/transactions",
            json={"title": "Coffee", "amount": 4.50, "type": "debit", "category": "Food"},
            headers=alice,
        )

        response = client.get(
            f"{API}/transactions/analytics/monthly", params={"months": 1}, headers=alice
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["debits"] == 4.5
        assert data[0]["transactionCount"] == 1

    def test_monthly_caps_large_requests(self, client, alice):
        response = client.get(
            f"{API}/transactions/analytics/monthly", params={"months": 40}, headers=alice
        )

        assert len(response.json()["data"]) == 12

    def test_categories_endpoint(self, client, alice):
        for amount, category in ((10, "Food"), (20, "Food"), (5, "Bus")):
            client.post(
                f"{API}/transactions",
                json={"title": "x", "amount": amount, "type": "expense", "category": category},
                headers=alice,
            )

        response = client.get(
            f"{API}/transactions/analytics/categories",
            params={"type": "debit"},
            headers=alice,
        )

        assert response.json()["data"] == [
            {"category": "Food", "totalAmount": 30, "transactionCount": 2, "avgAmount": 15},
            {"category": "Bus", "totalAmount": 5, "transactionCount": 1, "avgAmount": 5},
        ]

    def test_user_stats_endpoint(self, client, alice):
        client.post(
            f"{API}/transactions",
            json={"title": "Pay", "amount": 200, "type": "credit", "category": "Income"},
            headers=alice,
        )

        response = client.get(f"{API}/user/stats", headers=alice)

        stats = response.json()["stats"]
        assert stats["totalCredits"] == {"value": 200, "change": 100}
        assert stats["transactionCount"] == 1
