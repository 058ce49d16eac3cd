import time
from typing import AsyncGenerator, AsyncIterable, Optional

import httpx
from pydantic import ValidationError

from constant import API_ERROR_TEMPLATE, SSE_DATA_PREFIX, SSE_DONE
from gemini_chat.llm_client.errors import BadServerResponse, NetworkError
from gemini_chat.llm_client.schemas import StreamChunk
from logger import get_logger

logger = get_logger(__name__)


def parse_sse_line(line: str) -> Optional[str]:
    """
    Decode one server-sent-event line into a text delta.

    Returns None for blank lines, the `[DONE]` marker and any frame that
    is not valid JSON or has no `candidates[0].content.parts[0].text`.
    Partial or malformed frames are dropped rather than failing the stream.
    """
    if not line:
        return None

    payload = line[len(SSE_DATA_PREFIX):] if line.startswith(SSE_DATA_PREFIX) else line
    if payload.strip() == SSE_DONE:
        return None

    try:
        chunk = StreamChunk.model_validate_json(payload)
    except ValidationError:
        logger.debug("Skipping undecodable stream frame: %s", payload[:200])
        return None

    return chunk.first_text()


async def decode_sse_lines(
    lines: AsyncIterable[str], deadline: Optional[float] = None
) -> AsyncGenerator[str, None]:
    """
    Yield the text deltas found in `lines`.
    `deadline` is a `time.monotonic()` value checked after every line read,
    including lines that carry no text.
    """
    async for line in lines:
        if deadline is not None and time.monotonic() > deadline:
            raise NetworkError("Stream exceeded its total time limit")
        text = parse_sse_line(line)
        if text is not None:
            yield text


async def decode_stream_response(
    response: httpx.Response, deadline: Optional[float] = None
) -> AsyncGenerator[str, None]:
    """
    Stream text deltas out of a streamGenerateContent response.
    A non-200 status yields one readable error delta and then raises,
    without reading the body.
    """
    if response.status_code != 200:
        logger.error("Generation request failed with status %s", response.status_code)
        yield API_ERROR_TEMPLATE.format(status_code=response.status_code)
        raise BadServerResponse(response.status_code)

    async for text in decode_sse_lines(response.aiter_lines(), deadline):
        yield text
