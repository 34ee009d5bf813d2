import logging
from fastapi import APIRouter, Depends, status

from aura.core.dependencies import get_completion_broker, with_request_timeout
from aura.schemas.api import ApiResponse, ChatReply, ChatRequest
from aura.schemas.goal import ChatSessionMode
from aura.services.completion_broker import CompletionBroker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Chat with the assistant",
)
async def chat(
    body: ChatRequest,
    broker: CompletionBroker = Depends(get_completion_broker),
):
    """
    Reply to one chat message.

    In override mode the same message is also run through text extraction and
    the resulting goals are returned next to the reply (the caller's goals when
    extraction fails). REQUEST_TIMEOUT_SECONDS bounds the whole request, not
    each broker call.
    """

    async def respond():
        reply = await broker.converse(
            body.message,
            body.history,
            body.existing_goals,
            patterns=body.patterns,
            profile=body.profile,
            mode=body.mode,
        )
        if body.mode != ChatSessionMode.OVERRIDE:
            return reply, None

        goals = await broker.extract_from_text(
            body.message,
            body.existing_goals,
            patterns=body.patterns,
            profile=body.profile,
        )
        logger.info(f"[CHAT] Override mode produced {len(goals)} goal(s)")
        return reply, goals

    reply, goals = await with_request_timeout(respond())

    return ApiResponse(
        success=True,
        message="Reply generated",
        data=ChatReply(reply=reply, goals=goals).model_dump(mode="json", by_alias=True),
    )
