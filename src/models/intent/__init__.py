from src.models.intent.query_intent import ClassificationResult, QueryIntent

__all__ = ["ClassificationResult", "QueryIntent"]
