import structlog
from fastapi import APIRouter, Depends

from agent.orchestrator import TurnOrchestrator
from src.api.auth import verify_token
from src.api.dependencies import get_orchestrator
from src.models.chat import ChatRequest, ChatResponse

logger = structlog.get_logger(__name__)


# Create router
router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post(
    "",
    summary="Answer a Chat Turn",
    response_model=ChatResponse,
    response_model_exclude_none=True,
)
async def chat(
    request: ChatRequest,
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
    authenticated: bool = Depends(verify_token)
) -> ChatResponse:
    """Answer the last message of a conversation.

    Weather questions are classified, looked up and answered from live data;
    the structured weather card is attached as `weatherData`. Any other
    message gets a regular assistant reply without `weatherData`.

    Args:
        request: The conversation so far; the last message is answered.

    Returns:
        The assistant message for the chat client to append.
    """
    logger.info(
        "API request: Chat turn",
        message_count=len(request.messages),
        authenticated=authenticated
    )

    result = await orchestrator.handle_turn(request.messages)

    return ChatResponse(content=result.reply_text, weather_data=result.weather)
