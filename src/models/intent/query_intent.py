from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class QueryIntent(str, Enum):
    """Classified purpose of a chat turn."""

    CURRENT = "current"
    FORECAST = "forecast"
    MIXED = "mixed"
    NONE = "none"

    @property
    def includes_forecast(self) -> bool:
        return self in (QueryIntent.FORECAST, QueryIntent.MIXED)


class ClassificationResult(BaseModel):
    """Location and intent resolved for the latest turn."""

    location: Optional[str] = Field(None, description="Resolved place name, if any")
    intent: QueryIntent = Field(QueryIntent.NONE, description="Classified query intent")

    @model_validator(mode="after")
    def check_location_matches_intent(self):
        if (self.location is None) != (self.intent is QueryIntent.NONE):
            raise ValueError("A location is required exactly when the intent is not 'none'")
        return self

    @classmethod
    def not_weather(cls) -> "ClassificationResult":
        return cls(location=None, intent=QueryIntent.NONE)

    @property
    def is_weather_query(self) -> bool:
        return self.intent is not QueryIntent.NONE
