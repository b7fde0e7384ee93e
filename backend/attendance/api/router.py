"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from attendance.api.routes import auth, events, recurring_events, public, locations, attendees

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(recurring_events.router)
api_router.include_router(public.router)
api_router.include_router(locations.router)
api_router.include_router(attendees.router)
