from src.models.orchestrator.orchestration_result import OrchestrationResult

__all__ = ["OrchestrationResult"]
