"""Conversation API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.dependencies import (
    get_analytics_service,
    get_conversation_service,
    get_current_user,
)
from app.schemas.conversation_schema import (
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationResponse,
    CreateConversationRequest,
    MemoEnvelope,
    MemoRequest,
    MemoResponse,
    UpdateTitleRequest,
)
from app.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from app.services.analytics_service import AnalyticsService
from app.services.conversation_service import ConversationService

router = APIRouter(
    prefix="/api/v1/conversations",
    tags=["conversations"],
    dependencies=[Depends(get_current_user)],
    responses={401: ERROR_RESPONSES[401]},
)

ConversationServiceDep = Annotated[
    ConversationService, Depends(get_conversation_service)
]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]

GUARDED = {403: ERROR_RESPONSES[403], 404: ERROR_RESPONSES[404]}


@router.get("", response_model=ApiResponse[ConversationListResponse])
async def list_conversations(service: ConversationServiceDep) -> dict:
    """List the current user's conversations, newest first."""
    result = await service.list_conversations()
    return success_response(result)


@router.post(
    "",
    response_model=ApiResponse[ConversationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    request: CreateConversationRequest,
    service: ConversationServiceDep,
) -> dict:
    """Start a conversation owned by the current user."""
    result = await service.create_conversation(title=request.title)
    return success_response(result, status=201)


@router.patch(
    "/{conversation_id}/title",
    response_model=ApiResponse[None],
    responses=GUARDED,
)
async def update_conversation_title(
    conversation_id: str,
    request: UpdateTitleRequest,
    service: ConversationServiceDep,
) -> dict:
    """Update the title of a conversation."""
    await service.update_title(
        conversation_id=conversation_id,
        title=request.title,
    )
    return success_response(None, message="Title updated")


@router.delete(
    "/{conversation_id}",
    response_model=ApiResponse[None],
    responses=GUARDED,
)
async def delete_conversation(
    conversation_id: str,
    service: ConversationServiceDep,
) -> dict:
    """Delete a conversation with its messages and memo."""
    await service.delete_conversation(conversation_id)
    return success_response(None, message="Conversation deleted")


@router.get(
    "/{conversation_id}/messages",
    response_model=ApiResponse[ConversationMessagesResponse],
    responses=GUARDED,
)
async def get_conversation_messages(
    conversation_id: str,
    service: ConversationServiceDep,
) -> dict:
    """Messages of a conversation in creation order."""
    result = await service.get_messages(conversation_id)
    return success_response(result)


@router.get(
    "/{conversation_id}/memo",
    response_model=ApiResponse[MemoEnvelope],
    responses=GUARDED,
)
async def get_conversation_memo(
    conversation_id: str,
    service: ConversationServiceDep,
) -> dict:
    """Cached memo, or ``null`` when none was generated yet."""
    result = await service.get_memo(conversation_id)
    return success_response(result)


@router.post(
    "/{conversation_id}/memo",
    response_model=ApiResponse[MemoEnvelope],
    responses=GUARDED,
)
async def generate_conversation_memo(
    conversation_id: str,
    service: ConversationServiceDep,
    analytics: AnalyticsServiceDep,
    request: MemoRequest | None = None,
) -> dict:
    """Return the cached memo or generate one; ``regen`` forces a new one."""
    await service.get_accessible(conversation_id)
    memo = await analytics.conversation_memo(
        conversation_id,
        force_regenerate=bool(request and request.regen),
    )
    return success_response(MemoEnvelope(memo=MemoResponse.model_validate(memo)))
