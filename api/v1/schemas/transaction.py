from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from pydantic import BeforeValidator, Field, StringConstraints
from api.v1.models.transaction import TransactionType
from api.v1.schemas.base import CamelModel


def _polarity(value):
    if isinstance(value, str):
        return TransactionType(value.lower())
    return value


Polarity = Annotated[TransactionType, BeforeValidator(_polarity)]

Title = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
]
Category = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Amount = Annotated[Decimal, Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)]


class TransactionCreate(CamelModel):
    title: Title
    amount: Amount
    type: Polarity
    category: Category
    description: Optional[Description] = None
    date: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)


class TransactionUpdate(CamelModel):
    title: Optional[Title] = None
    amount: Optional[Amount] = None
    type: Optional[Polarity] = None
    category: Optional[Category] = None
    description: Optional[Description] = None
    date: Optional[datetime] = None
    tags: Optional[list[str]] = None


class TransactionResponse(CamelModel):
    id: str
    title: str
    amount: Decimal
    type: Polarity
    category: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    date: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None
