"""Version 1 API routes for the reservation engine."""

from fastapi import APIRouter

from .court_routes import router as court_router
from .reservation_routes import router as reservation_router
from .schedule_block_routes import router as schedule_block_router

router = APIRouter()
router.include_router(court_router)
router.include_router(reservation_router)
router.include_router(schedule_block_router)

__all__ = [
    "router",
    "court_router",
    "reservation_router",
    "schedule_block_router",
]
