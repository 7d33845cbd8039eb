from src.api.v1.locations.locations_routes import router as locations_router

__all__ = ["locations_router"]
