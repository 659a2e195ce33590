"""Chat API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import get_chat_service, get_current_user
from app.schemas.chat_schema import ChatRequest, ChatResponse
from app.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from app.services.chat_service import ChatService

router = APIRouter(
    prefix="/api/v1/chat",
    tags=["chat"],
    dependencies=[Depends(get_current_user)],
    responses={401: ERROR_RESPONSES[401], 403: ERROR_RESPONSES[403]},
)

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


@router.post("", response_model=ApiResponse[ChatResponse])
async def chat(request: ChatRequest, chat_service: ChatServiceDep) -> dict:
    """Send a message and return the model's reply."""
    result = await chat_service.chat(request)
    return success_response(result)
