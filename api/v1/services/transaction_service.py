from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, func, or_
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.schemas.transaction import TransactionCreate, TransactionUpdate
from api.v1.utils.exceptions import NotFoundError
from api.v1.utils.helpers import to_utc, utcnow
from api.v1.utils.logger import get_logger

logger = get_logger("transaction_service")

MAX_PAGE_SIZE = 100


def build_filters(
    user_id: str,
    transaction_type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
) -> list:
    """Where-clauses shared by listing and analytics; always owner scoped."""
    filters = [Transaction.user_id == user_id]

    if transaction_type is not None:
        filters.append(Transaction.type == transaction_type)
    if category:
        filters.append(Transaction.category == category)
    if start_date is not None:
        filters.append(Transaction.date >= to_utc(start_date))
    if end_date is not None:
        filters.append(Transaction.date <= to_utc(end_date))
    if search:
        needle = search.lower()
        filters.append(
            or_(
                func.lower(Transaction.title).contains(needle, autoescape=True),
                func.lower(Transaction.description).contains(needle, autoescape=True),
            )
        )

    return filters


class TransactionService:
    def __init__(self):
        pass

    def create_transaction(
        self, user_id: str, data: TransactionCreate, db: Session
    ) -> Transaction:
        transaction = Transaction(
            user_id=user_id,
            title=data.title,
            amount=data.amount,
            type=data.type,
            category=data.category,
            description=data.description,
            tags=data.tags,
            date=to_utc(data.date) if data.date else utcnow(),
        )

        db.add(transaction)
        db.commit()
        db.refresh(transaction)

        logger.info(
            "Transaction created",
            extra={
                "transaction_id": transaction.id,
                "user_id": user_id,
                "amount": str(transaction.amount),
                "type": transaction.type.value,
                "category": transaction.category,
            },
        )

        return transaction

    def get_transaction(
        self, transaction_id: str, user_id: str, db: Session
    ) -> Transaction:
        transaction = db.scalar(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.user_id == user_id,
            )
        )
        if not transaction:
            raise NotFoundError("Transaction not found")

        return transaction

    def list_transactions(
        self,
        user_id: str,
        db: Session,
        page: int = 1,
        limit: int = 20,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Transaction], int]:
        """
        Return one page of a user's transactions and the total match count.

        Newest first by transaction date, then by creation time.
        """
        limit = min(limit, MAX_PAGE_SIZE)
        filters = build_filters(
            user_id, transaction_type, category, start_date, end_date, search
        )

        total = db.scalar(select(func.count()).select_from(Transaction).where(*filters))

        query = (
            select(Transaction)
            .where(*filters)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return list(db.scalars(query).all()), total or 0

    def update_transaction(
        self,
        transaction_id: str,
        user_id: str,
        data: TransactionUpdate,
        db: Session,
    ) -> Transaction:
        transaction = self.get_transaction(transaction_id, user_id, db)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if field == "date" and value is not None:
                value = to_utc(value)
            if field == "tags" and value is None:
                value = []
            if value is None and field != "description":
                continue
            setattr(transaction, field, value)

        db.commit()
        db.refresh(transaction)

        logger.info(
            "Transaction updated",
            extra={
                "transaction_id": transaction.id,
                "user_id": user_id,
                "fields": sorted(changes),
            },
        )

        return transaction

    def delete_transaction(
        self, transaction_id: str, user_id: str, db: Session
    ) -> Transaction:
        transaction = self.get_transaction(transaction_id, user_id, db)

        db.delete(transaction)
        db.commit()

        logger.info(
            "Transaction deleted",
            extra={"transaction_id": transaction_id, "user_id": user_id},
        )

        return transaction


transaction_service = TransactionService()
