import base64
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from constant import DEFAULT_SESSION_TITLE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class Message(BaseModel):
    """A single chat turn. Only `text` changes after creation, while a reply streams in."""

    id: UUID = Field(default_factory=uuid4)
    role: Role
    text: str = ""
    image_data: Optional[bytes] = None

    @field_validator("image_data", mode="before")
    @classmethod
    def _decode_image(cls, value):
        # JSON carries the image as base64
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer("image_data", when_used="json-unless-none")
    def _encode_image(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    def with_text(self, text: str) -> "Message":
        return self.model_copy(update={"text": text})


class Session(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str = DEFAULT_SESSION_TITLE
    messages: List[Message] = Field(default_factory=list)
    last_modified: datetime = Field(default_factory=utc_now)


class ApiKey(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    key: str
    label: str
