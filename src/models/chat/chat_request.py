from typing import List

from pydantic import BaseModel, Field

from src.models.chat.conversation_turn import ConversationTurn


class ChatRequest(BaseModel):
    messages: List[ConversationTurn] = Field(
        ..., min_length=1, description="Conversation so far, the last entry is the new turn"
    )
