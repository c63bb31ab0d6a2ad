"""Primary API router definition."""

from fastapi import APIRouter

from . import bookings, credits, institutions, users

api_router = APIRouter()

api_router.include_router(credits.router)
api_router.include_router(bookings.router)
api_router.include_router(institutions.router)
api_router.include_router(users.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic health probe endpoint."""
    return {"status": "ok"}
