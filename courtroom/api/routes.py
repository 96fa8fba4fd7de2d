"""API router aggregating all route modules."""

from fastapi import APIRouter

from courtroom.api.catalog import router as catalog_router
from courtroom.api.events import router as events_router
from courtroom.api.session import router as session_router
from courtroom.api.speech import router as speech_router

router = APIRouter()

# Include all sub-routers
router.include_router(catalog_router, tags=["Catalog"])
router.include_router(session_router, tags=["Session"])
router.include_router(speech_router, tags=["Speech"])
router.include_router(events_router, tags=["Events"])
