from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.models.conversation import ConversationMode, MessageRole
from app.prompts import ContextFocus, Intensity, Timeframe


# Conversation Schemas
class ConversationUpdate(BaseModel):
    title: Optional[str] = None


class ConversationSummary(BaseModel):
    id: UUID
    title: str
    mode: Optional[ConversationMode] = None
    created_at: datetime
    updated_at: datetime
    message_count: int = 0


class ConversationList(BaseModel):
    conversations: List[ConversationSummary]


class ConversationUpdated(BaseModel):
    id: UUID
    title: str
    updated_at: datetime


class ConversationUpdateResponse(BaseModel):
    conversation: ConversationUpdated


# Message Schemas
class MessageResponse(BaseModel):
    id: UUID
    role: MessageRole
    content: str
    tokens_used: Optional[int] = None
    created_at: datetime


class ConversationDetail(BaseModel):
    id: UUID
    title: str
    mode: Optional[ConversationMode] = None
    created_at: datetime
    updated_at: datetime
    messages: List[MessageResponse]


class ConversationResponse(BaseModel):
    conversation: ConversationDetail


# Chat Request Schemas
class ChatMessage(BaseModel):
    role: MessageRole
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    conversation_id: Optional[UUID] = Field(None, alias="conversationId")
    mode: ConversationMode = ConversationMode.CHALLENGE
    intensity: Optional[Intensity] = None
    context: Optional[ContextFocus] = None
    timeframe: Optional[Timeframe] = None

    model_config = {"populate_by_name": True}


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    subscription_tier: str
    credits_remaining: int
