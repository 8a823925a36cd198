"""
Completion service client (Anthropic Messages API).

Provides a streaming interface for the agent loop:
- ``LLMClient.stream()`` opens one streamed model turn
- ``MessageStream`` yields parsed server-sent events as they arrive and
  reassembles the final assistant message once the stream ends
"""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional, cast

import httpx

from fretcraft.config import settings
from fretcraft.contracts.json_types import JSONObject, is_json_object
from fretcraft.contracts.llm_types import (
    ChatMessage,
    ContentBlock,
    FinalMessage,
    MessagesRequestPayload,
    StreamEvent,
    ToolSchemaDict,
    UsageStats,
)

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported completion provider."""
    ANTHROPIC = "anthropic"


class LLMStreamError(Exception):
    """The completion service reported an error inside an open stream."""


class _BlockBuffer:
    """Accumulates one content block while its deltas arrive."""

    def __init__(self, block: JSONObject):
        self.type = str(block.get("type", ""))
        self.id = str(block.get("id", ""))
        self.name = str(block.get("name", ""))
        self.text = str(block.get("text", "") or "")
        self.partial_json = ""
        self.input: Optional[JSONObject] = None

    def close(self) -> None:
        if self.type != "tool_use" or self.input is not None:
            return
        if not self.partial_json.strip():
            self.input = {}
            return
        try:
            parsed = json.loads(self.partial_json)
        except json.JSONDecodeError as e:
            logger.warning(f"Tool input for {self.name} ({self.id}) is not valid JSON: {e}")
            self.input = {}
            return
        self.input = parsed if is_json_object(parsed) else {}

    def to_content_block(self) -> Optional[ContentBlock]:
        if self.type == "text":
            return {"type": "text", "text": self.text} if self.text else None
        if self.type == "tool_use":
            self.close()
            return {"type": "tool_use", "id": self.id, "name": self.name, "input": self.input or {}}
        return None


class MessageStream:
    """One streamed model turn.

    Iterate with ``async for`` to receive events; call ``final_message()``
    after iteration for the reassembled assistant message.
    """

    def __init__(self, response: httpx.Response):
        self._response = response
        self._blocks: dict[int, _BlockBuffer] = {}
        self.stop_reason: Optional[str] = None
        self.usage: UsageStats = {}

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self._events()

    async def _events(self) -> AsyncIterator[StreamEvent]:
        async for line in self._response.aiter_lines():
            if not line or not line.startswith("data:"):
                continue
            data_str = line[5:].strip()
            if not data_str:
                continue
            try:
                event = json.loads(data_str)
            except json.JSONDecodeError:
                logger.warning(f"Skipping malformed stream line: {data_str[:200]}")
                continue
            if not is_json_object(event):
                continue

            event_type = event.get("type")
            if event_type == "ping":
                continue
            if event_type == "error":
                error = event.get("error")
                message = error.get("message") if isinstance(error, dict) else None
                raise LLMStreamError(str(message or "Completion service stream error"))

            self._accumulate(event)
            yield cast(StreamEvent, event)

    def _accumulate(self, event: JSONObject) -> None:
        event_type = event.get("type")
        index = event.get("index")

        if event_type == "message_start":
            message = event.get("message")
            if isinstance(message, dict) and isinstance(message.get("usage"), dict):
                self.usage.update(cast(UsageStats, message["usage"]))
        elif event_type == "content_block_start" and isinstance(index, int):
            block = event.get("content_block")
            self._blocks[index] = _BlockBuffer(block if isinstance(block, dict) else {})
        elif event_type == "content_block_delta" and isinstance(index, int):
            buf = self._blocks.get(index)
            delta = event.get("delta")
            if buf is None or not isinstance(delta, dict):
                return
            if delta.get("type") == "text_delta":
                buf.text += str(delta.get("text", ""))
            elif delta.get("type") == "input_json_delta":
                buf.partial_json += str(delta.get("partial_json", ""))
        elif event_type == "content_block_stop" and isinstance(index, int):
            buf = self._blocks.get(index)
            if buf is not None:
                buf.close()
        elif event_type == "message_delta":
            delta = event.get("delta")
            if isinstance(delta, dict) and "stop_reason" in delta:
                stop = delta.get("stop_reason")
                self.stop_reason = str(stop) if stop is not None else None
            usage = event.get("usage")
            if isinstance(usage, dict):
                self.usage.update(cast(UsageStats, usage))

    def final_message(self) -> FinalMessage:
        """The assistant message as received: text blocks and tool_use blocks."""
        content: list[ContentBlock] = []
        for index in sorted(self._blocks):
            block = self._blocks[index].to_content_block()
            if block is not None:
                content.append(block)
        return {
            "role": "assistant",
            "content": content,
            "stop_reason": self.stop_reason,
            "usage": self.usage,
        }


class LLMClient:
    """Streaming client for the Anthropic Messages API."""

    def __init__(
        self,
        provider: Optional[LLMProvider | str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.provider = LLMProvider(provider or settings.llm_provider)
        self.api_key = api_key or self._get_api_key()
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.llm_timeout
        self.base_url = (base_url or settings.anthropic_base_url).rstrip("/")
        self._client: Optional[httpx.AsyncClient] = http_client

    def _get_api_key(self) -> str:
        if self.provider == LLMProvider.ANTHROPIC:
            key = settings.anthropic_api_key
            if key is None:
                raise ValueError("Anthropic API key not configured")
            return key
        raise ValueError(f"No API key configured for provider: {self.provider}")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": settings.anthropic_version,
                "content-type": "application/json",
            }
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=headers)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_payload(
        self,
        messages: list[ChatMessage],
        system: Optional[str] = None,
        tools: Optional[list[ToolSchemaDict]] = None,
        max_tokens: Optional[int] = None,
    ) -> MessagesRequestPayload:
        payload: MessagesRequestPayload = {
            "model": self.model,
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "messages": messages,
            "stream": True,
        }
        if system:
            payload["system"] = system
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = {"type": "auto"}
        if settings.llm_temperature is not None:
            payload["temperature"] = settings.llm_temperature
        return payload

    @asynccontextmanager
    async def stream(
        self,
        messages: list[ChatMessage],
        system: Optional[str] = None,
        tools: Optional[list[ToolSchemaDict]] = None,
    ) -> AsyncIterator[MessageStream]:
        """Open one streamed turn.

        Raises ``httpx.HTTPStatusError`` on a non-200 response.  Leaving the
        ``async with`` block closes the underlying HTTP stream.
        """
        payload = self.build_payload(messages, system, tools)
        logger.info(f"Streaming request: model={self.model}, messages={len(messages)}")

        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/v1/messages",
                json=payload,
                headers={"x-api-key": self.api_key, "anthropic-version": settings.anthropic_version},
            ) as response:
                if response.status_code != 200:
                    error_text = await response.aread()
                    logger.error(f"Stream error {response.status_code}: {error_text.decode()[:500]}")
                    response.raise_for_status()
                yield MessageStream(response)
        except httpx.HTTPError as e:
            logger.error(f"Stream HTTP error: {e}")
            raise


def get_llm_client() -> LLMClient:
    """Get a configured LLM client instance."""
    return LLMClient()
