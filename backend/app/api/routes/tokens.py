"""
Token ledger endpoints: catalog, balance, purchase and history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import ApiResponse
from app.schemas.token import (
    TokenPackage,
    TokenPurchase,
    TokenBalanceResponse,
    TokenTransactionResponse,
    TokenPurchaseResponse,
)
from app.services import token_service
from app.core.security import get_active_user_id

router = APIRouter(prefix="/tokens", tags=["Tokens"])


@router.get("/packages", response_model=ApiResponse[list[TokenPackage]])
async def list_packages():
    return ApiResponse(message="Token packages retrieved successfully", data=token_service.list_packages())


@router.get("/balance", response_model=ApiResponse[TokenBalanceResponse])
async def get_balance(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    tokens = await token_service.get_balance(db, user_id)
    return ApiResponse(message="Token balance retrieved successfully", data=TokenBalanceResponse.model_validate(tokens))


@router.post("/purchase", response_model=ApiResponse[TokenPurchaseResponse])
async def purchase_tokens(
    purchase: TokenPurchase,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Credit a catalog package. Payment is settled upstream; the
    payment_reference is stored on the ledger entry as-is.
    """
    tokens, transaction = await token_service.purchase_tokens(
        db, user_id, purchase.package_id, purchase.payment_reference
    )
    return ApiResponse(
        message="Tokens purchased successfully",
        data=TokenPurchaseResponse(
            balance=TokenBalanceResponse.model_validate(tokens),
            transaction=TokenTransactionResponse.model_validate(transaction),
        ),
    )


@router.get("/history", response_model=ApiResponse[list[TokenTransactionResponse]])
async def get_history(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    transactions = await token_service.get_history(db, user_id, limit)
    return ApiResponse(
        message="Token history retrieved successfully",
        data=[TokenTransactionResponse.model_validate(t) for t in transactions],
    )
