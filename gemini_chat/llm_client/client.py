import time
from typing import AsyncGenerator, Callable, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from config.models import ClientConfig
from constant import GENERATE_CONTENT_METHOD
from gemini_chat.llm_client.errors import BadServerResponse, DecodeError, NetworkError
from gemini_chat.llm_client.request_builder import ListModels, StreamGenerate, build_request
from gemini_chat.llm_client.schemas import ModelInfo, ModelListResponse
from gemini_chat.llm_client.streaming import decode_stream_response
from gemini_chat.models import Message
from logger import get_logger

logger = get_logger(__name__)


class ChatClient:
    """
    Thin REST client for the Gemini generation API.

    Only two calls are supported: listing the models usable for
    `generateContent`, and streaming a reply for a message history over
    server-sent events. The base host is looked up on every request so a
    host changed in settings applies to the next call.
    """

    def __init__(
        self,
        client_config: ClientConfig,
        host_provider: Optional[Callable[[], str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = client_config
        self.host_provider = host_provider or (lambda: client_config.default_host)

        if not client_config.verify_tls:
            logger.warning(
                "TLS certificate verification is disabled; any certificate presented by the host is trusted."
            )

        self.http = httpx.AsyncClient(
            timeout=httpx.Timeout(client_config.request_timeout),
            verify=client_config.verify_tls,
            transport=transport,
        )

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def list_models(self, api_key: str) -> List[ModelInfo]:
        request = build_request(ListModels(), api_key, self.host_provider())
        try:
            response = await self.http.send(request)
        except httpx.RequestError as e:
            raise NetworkError(f"Model listing failed: {e}") from e

        if not response.is_success:
            raise BadServerResponse(response.status_code)

        try:
            listing = ModelListResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"Unexpected model listing payload: {e}") from e

        return [model for model in listing.models if model.supports(GENERATE_CONTENT_METHOD)]

    async def stream_generate(
        self,
        history: Sequence[Message],
        model_id: str,
        api_key: str,
    ) -> AsyncGenerator[str, None]:
        """
        Yield text deltas of the model reply as they arrive.
        Closing the generator early closes the HTTP response.
        """
        request = build_request(StreamGenerate(model_id=model_id, history=list(history)), api_key, self.host_provider())
        deadline = time.monotonic() + self.config.resource_timeout
        logger.debug("Streaming %s messages to %s", len(history), request.url)

        try:
            response = await self.http.send(request, stream=True)
        except httpx.RequestError as e:
            raise NetworkError(f"Could not open stream: {e}") from e

        try:
            async for text in decode_stream_response(response, deadline):
                yield text
        except NetworkError:
            logger.warning("Stream to %s still open after %gs, giving up", request.url, self.config.resource_timeout)
            raise
        except httpx.RequestError as e:
            raise NetworkError(f"Stream interrupted: {e}") from e
        finally:
            await response.aclose()
