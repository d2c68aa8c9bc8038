"""
Gemini Completion Client

Implementation of BaseCompletionClient for the Generative Language REST
API. One POST to models/{model}:generateContent per call, authenticated
with the ``key`` query parameter. No streaming and no retries.
"""

import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from gemchat.conversations.models import Message
from gemchat.llm.base import FALLBACK_TITLE, BaseCompletionClient
from gemchat.llm.errors import (
    EmptyReply,
    MalformedResponse,
    SafetyBlocked,
    TransportError,
)
from gemchat.llm.models import (
    Content,
    ErrorEnvelope,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    SystemInstruction,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-1.5-flash-latest"

TITLE_PROMPT = (
    "Generate a short, concise title (3-5 words) for this conversation "
    "based on its main topic.\n\nConversation:\n{transcript}"
)

_ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiClient(BaseCompletionClient):
    """
    Gemini completion client.

    Converts conversation messages to Gemini content blocks and decodes
    the response through pydantic models, raising typed CompletionError
    subclasses instead of reading missing fields.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        title_model: str | None = None,
        temperature: float = 0.7,
        top_k: int = 40,
        max_output_tokens: int = 8192,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Gemini client.

        Args:
            base_url: API root (without /v1beta)
            model: Model for chat replies
            title_model: Model for title suggestions (defaults to model)
            temperature: Sampling temperature
            top_k: Top-k sampling
            max_output_tokens: Maximum tokens per reply
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx client (tests inject a mock transport)
        """
        super().__init__(
            client_name="gemini",
            temperature=temperature,
            top_k=top_k,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.title_model = title_model or model
        self.client = http_client or httpx.AsyncClient(timeout=float(timeout))

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/v1beta/models/{model}:generateContent"

    async def complete(
        self,
        history: Sequence[Message],
        system_instruction: str,
        api_key: str,
    ) -> str:
        """Send history plus system instruction and return the reply text."""
        request = GenerateContentRequest(
            contents=[self._to_content(message) for message in history],
            system_instruction=SystemInstruction(parts=[Part(text=system_instruction)]),
            generation_config=GenerationConfig(
                temperature=self.temperature,
                top_k=self.top_k,
                max_output_tokens=self.max_output_tokens,
            ),
        )
        self._log_request(self.model, len(history))

        response = await self._post(self.model, request, api_key)
        reply = response.first_text()
        if not reply:
            if response.block_reason:
                raise SafetyBlocked(response.block_reason)
            raise EmptyReply()

        self._log_response(self.model, reply)
        return reply

    async def suggest_title(self, exchange: Sequence[Message], api_key: str) -> str:
        """Best-effort title for an exchange; FALLBACK_TITLE on any failure."""
        transcript = "\n".join(f"{message.role}: {message.content}" for message in exchange)
        request = GenerateContentRequest(
            contents=[
                Content(role="user", parts=[Part(text=TITLE_PROMPT.format(transcript=transcript))])
            ],
        )
        self._log_request(self.title_model, len(exchange))

        try:
            response = await self._post(self.title_model, request, api_key)
        except Exception as e:
            logger.warning(
                f"Title suggestion failed: {e}",
                extra={"error_type": type(e).__name__},
            )
            return FALLBACK_TITLE

        title = response.first_text().strip().replace('"', "")
        return title or FALLBACK_TITLE

    async def close(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _to_content(message: Message) -> Content:
        return Content(role=_ROLE_MAP[message.role], parts=[Part(text=message.content)])

    async def _post(
        self,
        model: str,
        request: GenerateContentRequest,
        api_key: str,
    ) -> GenerateContentResponse:
        try:
            response = await self.client.post(
                self.endpoint(model),
                params={"key": api_key},
                json=request.to_payload(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error: {type(e).__name__}")
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise self._error_from_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(
                "Response body is not valid JSON.",
                status_code=response.status_code,
            ) from e

        try:
            return GenerateContentResponse.model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected Gemini response shape", extra={"errors": e.error_count()})
            raise MalformedResponse(
                "Response did not match the expected format.",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _error_from_response(response: httpx.Response) -> TransportError:
        detail: str | None = None
        try:
            detail = ErrorEnvelope.model_validate(response.json()).error.message
        except (ValueError, ValidationError):
            detail = None

        logger.error(
            "Gemini API error",
            extra={"status_code": response.status_code, "detail": detail},
        )
        return TransportError(
            detail or f"Request failed with status {response.status_code}",
            status_code=response.status_code,
        )
