"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import (
    admin,
    agent,
    auth,
    bookings,
    contact,
    custom_trips,
    jobs,
    notifications,
    tokens,
    trips,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(auth.users_router)
api_router.include_router(tokens.router)
api_router.include_router(jobs.router)
api_router.include_router(trips.router)
api_router.include_router(bookings.router)
api_router.include_router(agent.router)
api_router.include_router(custom_trips.router)
api_router.include_router(notifications.router)
api_router.include_router(contact.router)
api_router.include_router(admin.router)
