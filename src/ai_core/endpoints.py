"""
Generation endpoints: one outbound round trip per call, no retrying.

An endpoint turns a GenerationRequest into an EndpointReply carrying the
HTTP status and, on success, the generated text decoded from the provider
envelope. Retry and failure classification live in AIClient.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI

from shared.config import Settings, get_settings
from shared.models import GenerationRequest

# Status used when no HTTP response arrived (connection error, timeout)
NO_RESPONSE = 0


@dataclass(frozen=True)
class EndpointReply:
    """Outcome of a single round trip."""

    status_code: int
    text: Optional[str] = None
    detail: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class GenerationEndpoint(Protocol):
    """Anything that can send a prompt and return the raw reply."""

    async def send(self, request: GenerationRequest) -> EndpointReply:
        ...


def _gemini_text(body: dict) -> Optional[str]:
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
    return "".join(texts) if texts else None


def _chat_text(body: dict) -> Optional[str]:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = choices[0].get("text")
    return text if isinstance(text, str) else None


def _plain_text(body: dict) -> Optional[str]:
    for key in ("response", "text", "output"):
        if isinstance(body.get(key), str):
            return body[key]
    return None


_ENVELOPE_DECODERS = (_gemini_text, _chat_text, _plain_text)


def extract_envelope_text(body: Any) -> Optional[str]:
    """
    Pull the generated text out of a provider response envelope.

    Tries, in order: Gemini ``candidates[0].content.parts[*].text``,
    chat-completion ``choices[0].message.content``, and flat
    ``response``/``text``/``output`` keys. Returns None if none apply.
    """
    if not isinstance(body, dict):
        return None
    for decoder in _ENVELOPE_DECODERS:
        text = decoder(body)
        if text is not None:
            return text
    return None


class OpenAIEndpoint:
    """Chat-completion endpoint using the OpenAI SDK (or a compatible server)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings or get_settings()
        self._client: Optional[AsyncOpenAI] = client

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI client. SDK retries are off; AIClient retries."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key.get_secret_value(),
                base_url=self.settings.openai_base_url or None,
                timeout=self.settings.ai_request_timeout,
                max_retries=0,
            )
        return self._client

    async def send(self, request: GenerationRequest) -> EndpointReply:
        try:
            response = await self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[{"role": "user", "content": request.prompt}],
                temperature=request.temperature,
                top_p=request.top_p,
            )
        except openai.APIStatusError as e:
            return EndpointReply(status_code=e.status_code, detail=str(e))
        except openai.APIConnectionError as e:
            return EndpointReply(status_code=NO_RESPONSE, detail=f"No response: {e}")

        if not response.choices:
            return EndpointReply(status_code=200, detail="Response contained no choices")

        content = response.choices[0].message.content
        if content is None:
            return EndpointReply(status_code=200, detail="Empty message content")
        return EndpointReply(status_code=200, text=content)

    async def close(self) -> None:
        """Close the SDK client."""
        if self._client is not None:
            await self._client.close()


class GeminiEndpoint:
    """Gemini generateContent endpoint over plain HTTP."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.gemini_base_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.settings.gemini_model}:generateContent"

    @property
    def headers(self) -> dict[str, str]:
        """Get request headers with API key."""
        return {
            "x-goog-api-key": self.settings.gemini_api_key.get_secret_value(),
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.ai_request_timeout)
        return self._client

    async def send(self, request: GenerationRequest) -> EndpointReply:
        client = await self._get_client()
        payload = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "topP": request.top_p,
            },
        }

        try:
            response = await client.post(self.url, headers=self.headers, json=payload)
        except httpx.TransportError as e:
            return EndpointReply(status_code=NO_RESPONSE, detail=f"No response: {e!r}")

        if not response.is_success:
            return EndpointReply(status_code=response.status_code, detail=response.text[:500])

        try:
            body = response.json()
        except ValueError:
            return EndpointReply(status_code=response.status_code, detail="Response body is not JSON")

        text = extract_envelope_text(body)
        if text is None:
            logger.debug(f"Unrecognized response envelope keys: {list(body)[:10] if isinstance(body, dict) else type(body)}")
            return EndpointReply(status_code=response.status_code, detail="No text in response envelope")
        return EndpointReply(status_code=response.status_code, text=text)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()


def build_endpoint(settings: Optional[Settings] = None) -> GenerationEndpoint:
    """Create the endpoint selected by settings.ai_provider."""
    settings = settings or get_settings()
    if settings.ai_provider == "gemini":
        return GeminiEndpoint(settings=settings)
    return OpenAIEndpoint(settings=settings)
