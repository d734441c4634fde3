"""
Public contact form.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import ApiResponse
from app.schemas.contact import ContactMessageCreate, ContactMessageResponse
from app.services import contact_service
from app.core.security import get_optional_user_id

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("", response_model=ApiResponse[ContactMessageResponse], status_code=status.HTTP_201_CREATED)
async def submit_message(
    data: ContactMessageCreate,
    user_id: Optional[int] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Anyone may write in; signed-in senders are linked to their account."""
    message = await contact_service.submit_message(db, data, user_id)
    return ApiResponse(message="Message sent successfully", data=ContactMessageResponse.model_validate(message))
