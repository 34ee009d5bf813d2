from fastapi import APIRouter, Depends, status

from aura.core.dependencies import get_completion_broker, with_request_timeout
from aura.schemas.api import ApiResponse, MediaExtractionRequest, TextExtractionRequest
from aura.schemas.goal import Goal
from aura.services.completion_broker import CompletionBroker

router = APIRouter()


def _dump_goals(goals: list[Goal]) -> list[dict]:
    return [goal.model_dump(mode="json", by_alias=True) for goal in goals]


@router.post(
    "/text",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract goals from text",
)
async def extract_text(
    body: TextExtractionRequest,
    broker: CompletionBroker = Depends(get_completion_broker),
):
    """
    Extract goals from typed or browser-transcribed text.

    On provider or parse failure the caller's existing goals come back
    unchanged, so the client can always replace its registry with `data.goals`.
    """
    goals = await with_request_timeout(
        broker.extract_from_text(
            body.prompt,
            body.existing_goals,
            patterns=body.patterns,
            profile=body.profile,
            category=body.category,
        )
    )
    unchanged = goals is body.existing_goals
    return ApiResponse(
        success=True,
        message="Registry unchanged" if unchanged else f"Extracted {len(goals)} goal(s)",
        data={"goals": _dump_goals(goals), "unchanged": unchanged},
    )


@router.post(
    "/audio",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract goals and a transcription from a recording",
)
async def extract_audio(
    body: MediaExtractionRequest,
    broker: CompletionBroker = Depends(get_completion_broker),
):
    result = await with_request_timeout(
        broker.extract_from_audio(
            body.data,
            body.mime_type,
            body.existing_goals,
            patterns=body.patterns,
            profile=body.profile,
            category=body.category,
        )
    )
    return ApiResponse(
        success=True,
        message=f"Extracted {len(result.goals)} goal(s)",
        data=result.model_dump(mode="json", by_alias=True),
    )


@router.post(
    "/image",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract goals from an image",
)
async def extract_image(
    body: MediaExtractionRequest,
    broker: CompletionBroker = Depends(get_completion_broker),
):
    """Failures surface as 502/503 through the AppException handler."""
    goals = await with_request_timeout(
        broker.extract_from_image(
            body.data,
            body.mime_type,
            body.existing_goals,
            patterns=body.patterns,
            profile=body.profile,
            category=body.category,
        )
    )
    return ApiResponse(
        success=True,
        message=f"Extracted {len(goals)} goal(s)",
        data={"goals": _dump_goals(goals)},
    )
