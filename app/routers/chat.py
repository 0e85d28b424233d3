import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.auth import AuthUser, get_current_user
from app.errors import NotFound
from app.schemas.chat import (
    ChatRequest,
    ConversationList,
    ConversationResponse,
    ConversationUpdate,
    ConversationUpdateResponse,
    ProfileResponse,
)
from app.services.chat import ChatService, get_chat_service
from app.services.conversation import ConversationService, get_conversation_service
from app.services.profile import ProfileService, get_profile_service

logger = logging.getLogger("uvicorn.error")

router = APIRouter(tags=["chat"])


def _event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


# Chat endpoint with streaming
@router.post("/chat")
async def send_message(
    request: ChatRequest,
    user: AuthUser = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Submit a chat turn and stream the reply via SSE.

    - If conversationId is provided: continues that conversation
    - If not: creates a new conversation titled from the first message

    Credit, ownership and validation errors are returned before the stream
    starts. The resolved conversation id is in the X-Conversation-Id header.
    """
    turn = await chat_service.start_turn(
        user=user,
        messages=[msg.model_dump(mode="json") for msg in request.messages],
        mode=request.mode,
        conversation_id=str(request.conversation_id) if request.conversation_id else None,
        intensity=request.intensity,
        context=request.context,
        timeframe=request.timeframe,
    )

    async def generate_stream():
        """Generate SSE stream of AI response"""
        if turn.is_new:
            yield _event({"type": "conversation_created", "conversation_id": turn.conversation_id})

        try:
            async for chunk in chat_service.stream_reply(turn):
                yield _event({"type": "chunk", "content": chunk})
        except Exception:
            # Already logged with context by the chat service
            yield _event({"type": "error", "content": "Failed to generate a response"})
            return

        yield _event({
            "type": "done",
            "tokens_used": turn.tokens_used,
            "credits_remaining": turn.credits_remaining,
        })

    return StreamingResponse(
        generate_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
            "X-Conversation-Id": turn.conversation_id,
        },
    )


# Conversation endpoints
@router.get("/conversations", response_model=ConversationList)
async def get_conversations(
    user: AuthUser = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """Get all conversations for the current user"""
    conversations = await conversation_service.list_conversations(user.id)
    return {"conversations": conversations}


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    user: AuthUser = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """Get a conversation with all its messages"""
    conversation = await conversation_service.get_conversation(str(conversation_id), user.id)
    if not conversation:
        raise NotFound(f"Conversation {conversation_id} not found for user {user.id}", "Conversation not found")

    messages = await conversation_service.get_messages(str(conversation_id))
    return {"conversation": {**conversation, "messages": messages}}


@router.patch("/conversations/{conversation_id}", response_model=ConversationUpdateResponse)
async def rename_conversation(
    conversation_id: UUID,
    update: ConversationUpdate,
    user: AuthUser = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """Rename a conversation"""
    conversation = await conversation_service.rename_conversation(
        conversation_id=str(conversation_id),
        user_id=user.id,
        title=update.title,
    )
    return {"conversation": conversation}


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: UUID,
    user: AuthUser = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """Delete a conversation and all its messages"""
    await conversation_service.delete_conversation(str(conversation_id), user.id)
    return {"success": True}


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user: AuthUser = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Get the current user's profile and remaining credits"""
    return await profile_service.get_profile(user)
