from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.weather.normalized_weather import NormalizedWeather


class ConversationTurn(BaseModel):
    """A single chat message as supplied by the calling chat session."""

    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")
    timestamp: Optional[datetime] = Field(None, description="When the message was sent")
    weather_data: Optional[NormalizedWeather] = Field(
        None, alias="weatherData", description="Weather card attached to an assistant message"
    )

    def as_message(self) -> dict:
        """Role/content pair understood by the language model."""
        return {"role": self.role, "content": self.content}
