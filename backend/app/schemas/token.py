"""
Pydantic schemas for the token ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class TokenPackage(BaseModel):
    id: str
    name: str
    tokens: int
    price: Decimal
    bonus: int = 0
    description: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        return self.tokens + self.bonus


class TokenPurchase(BaseModel):
    package_id: str = Field(..., min_length=1, max_length=50)
    payment_reference: str = Field(..., min_length=1, max_length=255)


class TokenGrant(BaseModel):
    user_id: int
    amount: int = Field(..., gt=0, le=100000)
    description: Optional[str] = Field(None, max_length=500)


class TokenBalanceResponse(BaseModel):
    user_id: int
    balance: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class TokenTransactionResponse(BaseModel):
    id: int
    kind: str
    amount: int
    cost: Optional[Decimal]
    reference_id: Optional[str]
    reference_type: Optional[str]
    payment_reference: Optional[str]
    description: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenPurchaseResponse(BaseModel):
    balance: TokenBalanceResponse
    transaction: TokenTransactionResponse


class TopTokenHolder(BaseModel):
    user_id: int
    balance: int
    user_name: Optional[str]
    user_email: Optional[str]


class TokenStatistics(BaseModel):
    total_users: int
    total_tokens_in_circulation: int
    total_tokens_purchased: int
    total_tokens_used: int
    total_revenue: Decimal
    top_users: list[TopTokenHolder]
