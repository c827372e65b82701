"""
AIClient - the single outbound path to the generation endpoint.

Classifies every failure by status code and retries transient ones with
exponential backoff. Nothing raises past generate(): the caller always gets
a GenerationResult.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import httpx
import openai
from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_exponential

from shared.config import Settings, get_settings
from shared.models import GenerationRequest, GenerationResult, RetryPolicy
from shared.results import FailureKind

from .endpoints import NO_RESPONSE, EndpointReply, GenerationEndpoint

SleepFunc = Callable[[float], Awaitable[None]]

# Raised when no response arrived at all
TRANSPORT_ERRORS = (httpx.TransportError, openai.APIConnectionError, asyncio.TimeoutError, ConnectionError)


def classify_reply(reply: EndpointReply) -> Optional[FailureKind]:
    """Failure kind for a reply, or None if it carries usable text."""
    if reply.is_success:
        return None if reply.text is not None else FailureKind.FATAL
    if reply.status_code == 429:
        return FailureKind.RATE_LIMITED
    if reply.status_code in (503, NO_RESPONSE):
        return FailureKind.SERVICE_UNAVAILABLE
    return FailureKind.FATAL


def _is_transient(result: GenerationResult) -> bool:
    return result.failure is not None and result.failure.transient


def _last_result(retry_state: RetryCallState) -> GenerationResult:
    result = retry_state.outcome.result()
    logger.warning(
        f"Generation failed after {retry_state.attempt_number} attempts: "
        f"{result.failure.value} - {result.detail}"
    )
    return result


def _log_retry(retry_state: RetryCallState) -> None:
    result = retry_state.outcome.result()
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Generation attempt {retry_state.attempt_number} {result.failure.value}, "
        f"retrying in {delay:.1f}s"
    )


class AIClient:
    """Calls a generation endpoint with retry and failure classification."""

    def __init__(
        self,
        endpoint: GenerationEndpoint,
        policy: Optional[RetryPolicy] = None,
        settings: Optional[Settings] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.endpoint = endpoint
        self.policy = policy or (settings or get_settings()).retry_policy
        self._sleep = sleep or asyncio.sleep

    async def _attempt(self, request: GenerationRequest, attempt: int) -> GenerationResult:
        """One round trip, classified."""
        try:
            reply = await self.endpoint.send(request)
        except TRANSPORT_ERRORS as e:
            logger.warning(f"No response from generation endpoint: {type(e).__name__}: {e}")
            return GenerationResult.fail(
                FailureKind.SERVICE_UNAVAILABLE, f"{type(e).__name__}: {e}", attempt
            )
        except Exception as e:
            logger.error(f"Generation endpoint raised {type(e).__name__}: {e}")
            return GenerationResult.fail(FailureKind.FATAL, f"{type(e).__name__}: {e}", attempt)

        kind = classify_reply(reply)
        if kind is None:
            return GenerationResult.ok(reply.text, attempt)

        if kind is FailureKind.FATAL:
            logger.error(f"Generation failed (status {reply.status_code}): {reply.detail}")
        return GenerationResult.fail(kind, reply.detail or f"HTTP {reply.status_code}", attempt)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Send a request, retrying rate-limit and unavailability failures.

        Waits base_delay * backoff_multiplier^(attempt-1) between attempts.

        Returns:
            GenerationResult with text, or the last failure once retries
            are exhausted (fatal failures are returned at once)
        """
        # Per-call retry state; concurrent calls never share a counter
        attempts = 0

        async def attempt() -> GenerationResult:
            nonlocal attempts
            attempts += 1
            return await self._attempt(request, attempts)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_exponential(
                multiplier=self.policy.base_delay,
                exp_base=self.policy.backoff_multiplier,
            ),
            retry=retry_if_result(_is_transient),
            sleep=self._sleep,
            before_sleep=_log_retry,
            retry_error_callback=_last_result,
        )
        return await retrying(attempt)

    async def close(self) -> None:
        """Close the underlying endpoint if it holds a connection."""
        close = getattr(self.endpoint, "close", None)
        if close is not None:
            await close()
