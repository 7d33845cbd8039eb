from src.api.v1.chat.chat_routes import router as chat_router

__all__ = ["chat_router"]
