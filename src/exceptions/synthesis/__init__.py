from src.exceptions.synthesis.synthesis_error import SynthesisError

__all__ = ["SynthesisError"]
