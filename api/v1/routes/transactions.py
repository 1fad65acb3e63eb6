from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from api.v1.models.transaction import TransactionType
from api.v1.models.user import User
from api.v1.schemas.transaction import (
    Polarity,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)
from api.v1.responses.success_response import success_response
from api.v1.services.analytics_service import analytics_service
from api.v1.services.transaction_service import transaction_service, MAX_PAGE_SIZE
from api.v1.services.user import user_service
from api.v1.utils.dependencies import get_db
from api.v1.utils.helpers import pagination_block

transactions = APIRouter(prefix="/transactions", tags=["Transactions"])


def _serialize(transaction) -> dict:
    return TransactionResponse.model_validate(transaction).model_dump(by_alias=True)


@transactions.get("", status_code=status.HTTP_200_OK)
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    type: Optional[Polarity] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None, max_length=100),
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    items, total = transaction_service.list_transactions(
        user.id,
        db,
        page=page,
        limit=limit,
        transaction_type=type,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )

    return success_response(
        transactions=[_serialize(item) for item in items],
        pagination=pagination_block(page, limit, total, "totalTransactions"),
    )


@transactions.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionCreate,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    transaction = transaction_service.create_transaction(user.id, payload, db)
    label = "Credit" if transaction.type == TransactionType.CREDIT else "Debit"

    return success_response(
        status_code=status.HTTP_201_CREATED,
        message=f"{label} added successfully!",
        transaction=_serialize(transaction),
    )


@transactions.get("/analytics/monthly", status_code=status.HTTP_200_OK)
async def monthly_analytics(
    months: int = Query(6, ge=1),
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    return success_response(
        data=analytics_service.monthly_series(user.id, db, months=months)
    )


@transactions.get("/analytics/categories", status_code=status.HTTP_200_OK)
async def category_analytics(
    type: Optional[Polarity] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    return success_response(
        data=analytics_service.category_breakdown(
            user.id,
            db,
            transaction_type=type,
            start_date=start_date,
            end_date=end_date,
        )
    )


@transactions.get("/{transaction_id}", status_code=status.HTTP_200_OK)
async def get_transaction(
    transaction_id: str,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    transaction = transaction_service.get_transaction(transaction_id, user.id, db)

    return success_response(transaction=_serialize(transaction))


@transactions.put("/{transaction_id}", status_code=status.HTTP_200_OK)
async def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    transaction = transaction_service.update_transaction(
        transaction_id, user.id, payload, db
    )

    return success_response(
        message="Transaction updated successfully",
        transaction=_serialize(transaction),
    )


@transactions.delete("/{transaction_id}", status_code=status.HTTP_200_OK)
async def delete_transaction(
    transaction_id: str,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    transaction = transaction_service.delete_transaction(transaction_id, user.id, db)

    return success_response(
        message="Transaction deleted successfully",
        deletedTransaction=_serialize(transaction),
    )
