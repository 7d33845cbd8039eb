from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.weather.normalized_weather import NormalizedWeather


class ChatResponse(BaseModel):
    """Assistant message returned for one chat turn."""

    model_config = ConfigDict(populate_by_name=True)

    role: Literal["assistant"] = Field("assistant", description="Message author")
    content: str = Field(..., description="Reply text")
    weather_data: Optional[NormalizedWeather] = Field(
        None, alias="weatherData", description="Weather card, present only for answered weather queries"
    )
