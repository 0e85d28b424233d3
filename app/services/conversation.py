import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends
from supabase import Client

from app.database import get_supabase
from app.errors import InternalFailure, InvalidArgument, NotFound
from app.models.conversation import ConversationMode, MessageRole

logger = logging.getLogger("uvicorn.error")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _with_message_count(conversation: dict) -> dict:
    # PostgREST embeds the aggregate as messages: [{"count": n}]
    embedded = conversation.pop("messages", None) or [{}]
    return {**conversation, "message_count": embedded[0].get("count", 0)}


class ConversationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    async def create_conversation(
        self,
        user_id: str,
        title: str,
        mode: ConversationMode,
        system_prompt: str,
    ) -> dict:
        """Create a new conversation with a snapshot of its system prompt"""
        data = {
            "user_id": user_id,
            "title": title,
            "mode": ConversationMode(mode).value,
            "system_prompt": system_prompt,
        }

        result = self.supabase.table("conversations").insert(data).execute()
        if not result.data:
            raise InternalFailure(f"Conversation insert returned no row for user {user_id}")
        return result.data[0]

    async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[dict]:
        """Get a conversation by ID (with user verification)"""
        result = (
            self.supabase.table("conversations")
            .select("*")
            .eq("id", conversation_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def list_conversations(self, user_id: str) -> List[dict]:
        """Get all conversations for a user with message counts, most recent first"""
        result = (
            self.supabase.table("conversations")
            .select("*, messages(count)")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .execute()
        )
        return [_with_message_count(conv) for conv in result.data or []]

    async def rename_conversation(self, conversation_id: str, user_id: str, title: str) -> dict:
        """
        Rename a conversation.

        Raises:
            InvalidArgument: If the title is blank
            NotFound: If no conversation with this id is owned by the user
        """
        title = (title or "").strip()
        if not title:
            raise InvalidArgument("Blank conversation title", "Valid title required")

        result = (
            self.supabase.table("conversations")
            .update({"title": title, "updated_at": _now()})
            .eq("id", conversation_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not result.data:
            raise NotFound(
                f"Conversation {conversation_id} not found for user {user_id}",
                "Conversation not found",
            )
        return result.data[0]

    async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        """
        Delete a conversation and all its messages.

        Messages go with it through ON DELETE CASCADE.

        Raises:
            NotFound: If no conversation with this id is owned by the user
        """
        result = (
            self.supabase.table("conversations")
            .delete()
            .eq("id", conversation_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not result.data:
            raise NotFound(
                f"Conversation {conversation_id} not found for user {user_id}",
                "Conversation not found",
            )
        logger.info("Deleted conversation %s for user %s", conversation_id, user_id)

    async def add_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        tokens_used: Optional[int] = None,
    ) -> dict:
        """Add a message to a conversation"""
        data = {
            "conversation_id": conversation_id,
            "role": MessageRole(role).value,
            "content": content,
            "tokens_used": tokens_used,
        }

        result = self.supabase.table("messages").insert(data).execute()
        if not result.data:
            raise InternalFailure(f"Message insert returned no row for conversation {conversation_id}")

        # Update conversation's updated_at timestamp
        self.supabase.table("conversations").update(
            {"updated_at": _now()}
        ).eq("id", conversation_id).execute()

        return result.data[0]

    async def get_messages(self, conversation_id: str) -> List[dict]:
        """Get all messages in a conversation ordered by creation time"""
        result = (
            self.supabase.table("messages")
            .select("*")
            .eq("conversation_id", conversation_id)
            .order("created_at", desc=False)
            .execute()
        )
        return result.data or []


def get_conversation_service(supabase: Client = Depends(get_supabase)) -> ConversationService:
    """Get conversation service instance"""
    return ConversationService(supabase)
