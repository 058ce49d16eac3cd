import os
from typing import Optional

from pydantic import BaseModel, Field

from constant import DEFAULT_HOST, DEFAULT_MODEL, DEFAULT_SESSION_TITLE, HISTORY_LIMIT, TITLE_LENGTH


class ClientConfig(BaseModel):
    default_host: str = Field(default_factory=lambda: os.getenv("GEMINI_HOST", DEFAULT_HOST))
    # Seconds until the first byte and between two reads of a response.
    request_timeout: float = 120.0
    # Seconds one streamed response may stay open in total.
    resource_timeout: float = 300.0
    # False trusts any certificate presented by the host, matching the mobile client.
    verify_tls: bool = False


class ChatConfig(BaseModel):
    default_model: str = DEFAULT_MODEL
    # Messages sent as context with each request, the new user message included.
    history_limit: int = Field(default=HISTORY_LIMIT, ge=1)
    title_length: int = TITLE_LENGTH
    default_title: str = DEFAULT_SESSION_TITLE


class StorageConfig(BaseModel):
    redis_url: Optional[str] = Field(default_factory=lambda: os.getenv("REDIS_URL"))
    key_prefix: str = "gemini_chat:"


class AppConfig(BaseModel):
    client: ClientConfig = Field(default_factory=ClientConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
