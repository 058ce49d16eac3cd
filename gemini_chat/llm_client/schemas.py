"""
Typed request and response bodies for the generation REST API.

Responses are validated leniently: unknown fields are ignored and optional
fields may be missing, so new server-side additions never break decoding.
"""

import base64
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constant import IMAGE_MIME_TYPE, MODEL_PREFIX


class InlineData(BaseModel):
    mime_type: str = IMAGE_MIME_TYPE
    data: str

    @classmethod
    def from_image(cls, image: bytes) -> "InlineData":
        return cls(data=base64.b64encode(image).decode("ascii"))


class RequestPart(BaseModel):
    inline_data: Optional[InlineData] = None
    text: Optional[str] = None


class RequestContent(BaseModel):
    role: str
    parts: List[RequestPart] = Field(default_factory=list)


class GenerateContentRequest(BaseModel):
    contents: List[RequestContent]


class ResponsePart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class ResponseContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: List[ResponsePart] = Field(default_factory=list)


class Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Optional[ResponseContent] = None


class StreamChunk(BaseModel):
    """One `data:` frame of a streamGenerateContent response."""

    model_config = ConfigDict(extra="ignore")

    candidates: List[Candidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text


class ModelInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    supported_generation_methods: List[str] = Field(default_factory=list, alias="supportedGenerationMethods")

    @field_validator("supported_generation_methods", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value if value is not None else []

    @property
    def short_name(self) -> str:
        return self.name.replace(MODEL_PREFIX, "")

    def supports(self, method: str) -> bool:
        return method in self.supported_generation_methods

    def __eq__(self, other) -> bool:
        if not isinstance(other, ModelInfo):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)


class ModelListResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    models: List[ModelInfo]
