from typing import Optional

from pydantic import BaseModel, Field

from src.models.weather.normalized_weather import NormalizedWeather


class OrchestrationResult(BaseModel):
    """Outcome of one chat turn: reply text plus the weather card, if any."""

    reply_text: str = Field(..., description="Assistant reply")
    weather: Optional[NormalizedWeather] = Field(
        None, description="Set only when weather was fetched successfully"
    )
