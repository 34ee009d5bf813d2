"""Health check endpoints for monitoring and orchestration."""
from fastapi import APIRouter, Depends, status

from aura.core.dependencies import get_completion_broker
from aura.schemas.api import ApiResponse
from aura.services.completion_broker import CompletionBroker

router = APIRouter()


@router.get(
    "/health",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Provider Chain Status",
    description="Configured provider tiers per modality"
)
async def health_check(broker: CompletionBroker = Depends(get_completion_broker)):
    """
    Report which provider tiers are configured.

    Lists provider names, models and attempt counts for the text, audio and
    image chains. Credentials are never included. `success` is false when the
    text chain is empty, since every operation would then fall back.
    """
    chains = broker.chains.describe()
    ready = bool(broker.chains.text)
    return ApiResponse(
        success=ready,
        message="System operational" if ready else "No text completion provider configured",
        data={"status": "ok" if ready else "degraded", "providers": chains},
    )
