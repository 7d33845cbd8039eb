from src.models.chat.chat_request import ChatRequest
from src.models.chat.chat_response import ChatResponse
from src.models.chat.conversation_turn import ConversationTurn

__all__ = ["ChatRequest", "ChatResponse", "ConversationTurn"]
