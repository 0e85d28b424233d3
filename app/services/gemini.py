import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional

import google.generativeai as genai
from google.generativeai.types import ContentDict

from app.config import (
    CHAT_MAX_OUTPUT_TOKENS,
    CHAT_TEMPERATURE,
    COMPLETION_TIMEOUT_SECONDS,
    GEMINI_API_KEY,
    GEMINI_MODEL,
)
from app.errors import GenerationFailure

logger = logging.getLogger("uvicorn.error")


def _total_tokens(response) -> Optional[int]:
    usage = getattr(response, "usage_metadata", None)
    if usage is None:
        return None
    return getattr(usage, "total_token_count", None)


class CompletionStream:
    """
    Async iterator over the chunks of one streamed reply.

    The whole stream shares a single deadline. `total_tokens` holds the
    reported usage once iteration has finished normally.
    """

    def __init__(self, start: Callable, timeout: float):
        self._start = start
        self.timeout = timeout
        self.total_tokens: Optional[int] = None

    async def __aiter__(self) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        try:
            response = await asyncio.wait_for(self._start(), self.timeout)
            chunks = response.__aiter__()
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                try:
                    chunk = await asyncio.wait_for(chunks.__anext__(), remaining)
                except StopAsyncIteration:
                    break
                if chunk.text:
                    yield chunk.text
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Completion timed out after {self.timeout}s") from e

        self.total_tokens = _total_tokens(response)


class GeminiService:
    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model_name: str = GEMINI_MODEL,
        timeout: float = COMPLETION_TIMEOUT_SECONDS,
    ):
        if not api_key:
            raise ValueError("GEMINI_API_KEY must be set in environment variables")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout

    def _build_history(self, messages: List[dict]) -> List[ContentDict]:
        """Build chat history from messages for Gemini API"""
        history = []

        for msg in messages:
            # The system prompt travels as system_instruction
            if msg["role"] == "system":
                continue
            role = "user" if msg["role"] == "user" else "model"
            history.append({
                "role": role,
                "parts": [{"text": msg["content"]}]
            })

        return history

    def chat_stream(
        self,
        messages: List[dict],
        system_instruction: str,
        temperature: float = CHAT_TEMPERATURE,
        max_output_tokens: int = CHAT_MAX_OUTPUT_TOKENS,
    ) -> CompletionStream:
        """
        Stream a chat reply from Gemini.

        Args:
            messages: Full conversation [{"role": "user"|"assistant", "content": "..."}],
                the last entry being the user turn to answer
            system_instruction: System instruction for the model

        Returns:
            CompletionStream yielding chunks of the response text
        """
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
            generation_config=genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            ),
        )

        history = self._build_history(messages[:-1])
        prompt = messages[-1]["content"]

        async def start():
            chat = model.start_chat(history=history)
            return await chat.send_message_async(prompt, stream=True)

        return CompletionStream(start, self.timeout)

    async def complete(
        self,
        system_instruction: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
        response_mime_type: Optional[str] = None,
    ) -> str:
        """
        Get a complete response from Gemini (non-streaming).

        Raises:
            GenerationFailure: If the call does not finish before the timeout
        """
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
            generation_config=genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
                response_mime_type=response_mime_type,
            ),
        )

        try:
            response = await asyncio.wait_for(
                model.generate_content_async(prompt), self.timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Completion timed out after {self.timeout}s") from e

        return response.text


_gemini_service: Optional[GeminiService] = None


def get_gemini_service() -> GeminiService:
    """Get Gemini service instance"""
    global _gemini_service
    if _gemini_service is None:
        _gemini_service = GeminiService()
    return _gemini_service
