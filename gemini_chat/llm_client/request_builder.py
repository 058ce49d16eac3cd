from dataclasses import dataclass, field
from typing import List, Sequence, Union

import httpx

from constant import API_VERSION_PREFIX
from gemini_chat.llm_client.errors import InvalidURL
from gemini_chat.llm_client.schemas import GenerateContentRequest, InlineData, RequestContent, RequestPart
from gemini_chat.models import Message


@dataclass(frozen=True)
class ListModels:
    method: str = "GET"

    @property
    def path(self) -> str:
        return "models"


@dataclass(frozen=True)
class StreamGenerate:
    model_id: str
    history: Sequence[Message] = field(default_factory=list)
    method: str = "POST"

    @property
    def path(self) -> str:
        return f"{self.model_id}:streamGenerateContent"


Operation = Union[ListModels, StreamGenerate]


def message_to_content(message: Message) -> RequestContent:
    """
    Image first, then text. A message with neither gets an empty parts list.
    """
    parts: List[RequestPart] = []
    if message.image_data is not None:
        parts.append(RequestPart(inline_data=InlineData.from_image(message.image_data)))
    if message.text:
        parts.append(RequestPart(text=message.text))
    return RequestContent(role=message.role.value, parts=parts)


def build_generate_body(history: Sequence[Message]) -> GenerateContentRequest:
    return GenerateContentRequest(contents=[message_to_content(msg) for msg in history])


def build_url(host: str, path: str, params: dict | None = None) -> httpx.URL:
    clean_host = host[:-1] if host.endswith("/") else host
    try:
        base = httpx.URL(clean_host)
        if base.scheme not in ("http", "https") or not base.host:
            raise InvalidURL(f"Host is not a valid URL authority: {host!r}")
        # The path is appended as-is so `:streamGenerateContent` keeps its colon.
        return httpx.URL(clean_host + API_VERSION_PREFIX + path, params=params)
    except httpx.InvalidURL as e:
        raise InvalidURL(f"Cannot build URL from host {host!r}: {e}") from e


def build_request(operation: Operation, api_key: str, host: str) -> httpx.Request:
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": api_key,
    }

    if isinstance(operation, StreamGenerate):
        url = build_url(host, operation.path, params={"alt": "sse"})
        body = build_generate_body(operation.history).model_dump_json(exclude_none=True)
        return httpx.Request(operation.method, url, headers=headers, content=body.encode("utf-8"))

    url = build_url(host, operation.path)
    return httpx.Request(operation.method, url, headers=headers)
