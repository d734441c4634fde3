"""
Public trip catalog: filtered listing, detail with reviews, trending.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.review import Review
from app.models.trip import Trip
from app.models.user import User
from app.core.exceptions import TripNotFound


async def list_trips(
    db: AsyncSession,
    location: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    page: int = 1,
    page_size: int = 10,
) -> dict:
    """Active trips matching the filters, newest first, paginated."""
    query = select(Trip).where(Trip.status == "active")

    if location:
        query = query.where(Trip.location.ilike(f"%{location}%"))
    if start_date:
        query = query.where(Trip.start_date >= start_date)
    if end_date:
        query = query.where(Trip.end_date <= end_date)
    if min_price is not None:
        query = query.where(Trip.price >= min_price)
    if max_price is not None:
        query = query.where(Trip.price <= max_price)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(
        query.order_by(Trip.created_at.desc(), Trip.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return {
        "trips": list(result.scalars().all()),
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


async def get_trip(db: AsyncSession, trip_id: int) -> dict:
    """An active trip with its agent's name and the ten latest active reviews."""
    result = await db.execute(
        select(Trip, User.name)
        .outerjoin(User, User.id == Trip.agent_id)
        .where(Trip.id == trip_id, Trip.status == "active")
    )
    row = result.one_or_none()
    if row is None:
        raise TripNotFound(f"Trip {trip_id} not found")
    trip, agent_name = row

    reviews = await db.execute(
        select(Review.id, Review.rating, Review.comment, Review.created_at, User.name.label("client_name"))
        .outerjoin(User, User.id == Review.client_id)
        .where(Review.trip_id == trip_id, Review.status == "active")
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(10)
    )

    return {
        "trip": trip,
        "agent_name": agent_name,
        "reviews": [dict(row._mapping) for row in reviews.all()],
    }


async def get_trending_trips(db: AsyncSession, limit: int = 10) -> list[Trip]:
    """Top-rated active trips, ties broken by review count."""
    result = await db.execute(
        select(Trip)
        .where(Trip.status == "active")
        .order_by(Trip.average_rating.desc(), Trip.total_reviews.desc(), Trip.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())
