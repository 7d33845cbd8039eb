from fastapi import APIRouter

from src.api.v1.chat import chat_router
from src.api.v1.locations import locations_router
from src.api.v1.weather import weather_router

# Create main router
router = APIRouter(prefix="/api/v1")

# Include all sub-routers
router.include_router(chat_router)
router.include_router(locations_router)
router.include_router(weather_router)
