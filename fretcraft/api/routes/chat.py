"""
Chat endpoint: streams one agent turn as server-sent events.

Frames are ``data: <json>\\n\\n`` for ``text``, ``tool_start``,
``tool_result``, ``done`` and ``error`` events, followed by ``data: [DONE]``.
Blocks from successful tool calls are merged into the lesson and the
transcript is saved before the final frame.
"""
import logging
import uuid
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from fretcraft.config import settings
from fretcraft.contracts.llm_types import ChatMessage
from fretcraft.core.agent_loop import stream_chat_response
from fretcraft.core.blocks import utc_now
from fretcraft.core.llm_client import LLMClient, get_llm_client
from fretcraft.core.planner import LessonPlanner
from fretcraft.core.prompts import build_system_prompt
from fretcraft.core.tool_handlers import ToolCallResult
from fretcraft.db import AsyncSessionLocal, get_db
from fretcraft.models.requests import ChatRequest, ToolCallRecord, TranscriptMessage
from fretcraft.protocol.emitter import DONE_FRAME, emit
from fretcraft.protocol.events import ErrorEvent, TextEvent, ToolResultEvent
from fretcraft.services import lessons as lesson_store
from fretcraft.services.lessons import LessonNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


def get_chat_llm() -> LLMClient:
    """Completion client for one chat request."""
    try:
        return get_llm_client()
    except ValueError as e:
        logger.error(f"Completion service unavailable: {e}")
        raise HTTPException(status_code=503, detail="Completion service not configured")


async def _persist_turn(
    lesson_id: str,
    user_message: str,
    response_text: str,
    results: list[ToolCallResult],
) -> int:
    """Merge new blocks into the lesson and append the exchange to the transcript.

    Returns the number of blocks added.
    """
    async with AsyncSessionLocal() as session:
        planner = LessonPlanner(await lesson_store.load_document(session, lesson_id))
        added = 0
        for result in results:
            if result.success and result.block is not None:
                if planner.add_block_direct(result.block):
                    added += 1
                else:
                    logger.warning(f"Skipped duplicate block {result.block.id} for lesson {lesson_id[:8]}")
        await lesson_store.save_document(session, lesson_id, planner.get_state())

        transcript = await lesson_store.load_transcript(session, lesson_id)
        transcript.append(TranscriptMessage(
            id=str(uuid.uuid4()),
            role="user",
            content=user_message,
            created_at=utc_now(),
        ))
        transcript.append(TranscriptMessage(
            id=str(uuid.uuid4()),
            role="assistant",
            content=response_text,
            created_at=utc_now(),
            tool_calls=[
                ToolCallRecord(
                    success=r.success,
                    block_id=r.block.id if r.block is not None else None,
                    error=r.error,
                )
                for r in results
            ],
        ))
        await lesson_store.save_transcript(session, lesson_id, transcript)
        await session.commit()
    return added


@router.post("/chat")
@limiter.limit(settings.chat_rate_limit)
async def chat(
    request: Request,
    chat_request: ChatRequest,
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_chat_llm),
) -> StreamingResponse:
    """Streaming chat endpoint (SSE)."""
    lesson_id = chat_request.lesson_id
    try:
        document = await lesson_store.load_document(db, lesson_id)
        transcript = await lesson_store.load_transcript(db, lesson_id)
    except LessonNotFoundError:
        await llm.close()
        raise HTTPException(status_code=404, detail="Lesson not found")

    messages: list[ChatMessage] = [
        {"role": m.role, "content": m.content} for m in transcript if m.content
    ]
    messages.append({"role": "user", "content": chat_request.message})
    system = build_system_prompt(document)

    async def event_stream() -> AsyncIterator[str]:
        response_text = ""
        results: list[ToolCallResult] = []
        logger.info(f"Chat stream opened for lesson {lesson_id[:8]} ({len(messages)} messages)")

        try:
            async for event in stream_chat_response(messages, llm=llm, system=system):
                if isinstance(event, TextEvent):
                    response_text += event.content
                elif isinstance(event, ToolResultEvent):
                    results.append(event.result)
                yield emit(event)

            try:
                added = await _persist_turn(lesson_id, chat_request.message, response_text, results)
                logger.info(f"Chat turn saved for lesson {lesson_id[:8]}: {added} blocks added")
            except Exception as e:
                logger.exception(f"Failed to save chat turn for lesson {lesson_id[:8]}")
                yield emit(ErrorEvent(error=f"Failed to save lesson: {e}"))

            yield DONE_FRAME
        finally:
            await llm.close()

    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers=headers,
    )
