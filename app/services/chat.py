"""
Chat turns: credit check, conversation bookkeeping and the streamed reply.

A turn runs as an ordered series of independent writes:

1. profile resolved (created on first use), credits checked
2. conversation created when the turn starts a new one
3. user message saved
4. reply streamed from the completion API
5. assistant message saved
6. one credit debited (free tier)

A failure at any step leaves the earlier writes in place. Steps 5 and 6 only
run when the stream finishes; a failed or abandoned stream leaves the user
message without a reply and the balance untouched. A failed debit is logged
and the saved reply is kept.
"""
import logging
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

from fastapi import Depends

from app.auth import AuthUser
from app.errors import GenerationFailure, InvalidArgument, NotFound
from app.models.conversation import ConversationMode, MessageRole, Profile
from app.prompts import ContextFocus, Intensity, Timeframe, build_system_prompt, generate_title
from app.services.conversation import ConversationService, get_conversation_service
from app.services.gemini import GeminiService, get_gemini_service
from app.services.profile import ProfileService, get_profile_service

logger = logging.getLogger("uvicorn.error")


@dataclass
class ChatTurn:
    user_id: str
    conversation_id: str
    is_new: bool
    profile: Profile
    system_prompt: str
    messages: List[dict]
    tokens_used: Optional[int] = None
    credits_remaining: Optional[int] = None


class ChatService:
    def __init__(
        self,
        conversations: ConversationService,
        profiles: ProfileService,
        gemini: GeminiService,
    ):
        self.conversations = conversations
        self.profiles = profiles
        self.gemini = gemini

    async def start_turn(
        self,
        user: AuthUser,
        messages: List[dict],
        mode: ConversationMode = ConversationMode.CHALLENGE,
        conversation_id: Optional[str] = None,
        intensity: Optional[Intensity] = None,
        context: Optional[ContextFocus] = None,
        timeframe: Optional[Timeframe] = None,
    ) -> ChatTurn:
        """
        Everything that must succeed before a reply is generated.

        Raises:
            InvalidArgument: If the last message is not a user turn
            PaymentRequired: If a free user has no credits left (nothing is written)
            NotFound: If conversation_id is not owned by the user
        """
        if not messages or messages[-1]["role"] != MessageRole.USER.value:
            raise InvalidArgument("Last message must be a user turn", "Last message must be from the user")

        profile = await self.profiles.get_or_create(user)
        self.profiles.ensure_can_chat(profile)

        if conversation_id:
            conversation = await self.conversations.get_conversation(conversation_id, user.id)
            if not conversation:
                raise NotFound(
                    f"Conversation {conversation_id} not found for user {user.id}",
                    "Conversation not found",
                )
            is_new = False
        else:
            conversation = await self.conversations.create_conversation(
                user_id=user.id,
                title=generate_title(messages[0]["content"]),
                mode=mode,
                system_prompt=build_system_prompt(mode, intensity, context, timeframe),
            )
            is_new = True

        conversation_id = conversation["id"]

        # Saved before generation so the user's input survives a failed reply
        await self.conversations.add_message(
            conversation_id=conversation_id,
            role=MessageRole.USER,
            content=messages[-1]["content"],
        )

        system_prompt = conversation.get("system_prompt") or build_system_prompt(
            conversation.get("mode") or mode
        )

        return ChatTurn(
            user_id=user.id,
            conversation_id=conversation_id,
            is_new=is_new,
            profile=profile,
            system_prompt=system_prompt,
            messages=messages,
        )

    async def stream_reply(self, turn: ChatTurn) -> AsyncIterator[str]:
        """
        Stream the assistant reply, then settle it.

        Raises:
            GenerationFailure: If the completion API fails or times out
        """
        stream = self.gemini.chat_stream(
            messages=turn.messages,
            system_instruction=turn.system_prompt,
        )

        parts = []
        try:
            async for chunk in stream:
                parts.append(chunk)
                yield chunk
        except GenerationFailure:
            logger.exception(
                "Generation failed for conversation %s (user %s)",
                turn.conversation_id, turn.user_id,
            )
            raise
        except Exception as e:
            logger.exception(
                "Generation failed for conversation %s (user %s)",
                turn.conversation_id, turn.user_id,
            )
            raise GenerationFailure(f"Completion stream failed: {e}") from e

        turn.tokens_used = stream.total_tokens or 0
        await self.conversations.add_message(
            conversation_id=turn.conversation_id,
            role=MessageRole.ASSISTANT,
            content="".join(parts),
            tokens_used=turn.tokens_used,
        )

        await self._settle_credit(turn)

    async def _settle_credit(self, turn: ChatTurn) -> None:
        try:
            turn.credits_remaining = await self.profiles.debit_credit(turn.profile)
        except Exception:
            logger.exception(
                "Credit debit failed for user %s after conversation %s",
                turn.user_id, turn.conversation_id,
            )


def get_chat_service(
    conversations: ConversationService = Depends(get_conversation_service),
    profiles: ProfileService = Depends(get_profile_service),
    gemini: GeminiService = Depends(get_gemini_service),
) -> ChatService:
    """Get chat service instance"""
    return ChatService(conversations, profiles, gemini)
