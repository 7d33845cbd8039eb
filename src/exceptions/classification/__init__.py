from src.exceptions.classification.classification_ambiguous_error import (
    ClassificationAmbiguousError,
)

__all__ = ["ClassificationAmbiguousError"]
