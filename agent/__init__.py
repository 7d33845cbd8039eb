from agent.intent_classifier import IntentClassifier
from agent.language_model import AgentsLanguageModel, LanguageModel
from agent.orchestrator import TurnOrchestrator
from agent.response_synthesizer import ResponseSynthesizer

__all__ = [
    "IntentClassifier",
    "AgentsLanguageModel",
    "LanguageModel",
    "TurnOrchestrator",
    "ResponseSynthesizer",
]
