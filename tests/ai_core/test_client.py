import asyncio

import httpx
import pytest

from ai_core.client import AIClient, classify_reply
from ai_core.endpoints import NO_RESPONSE, EndpointReply
from shared.models import GenerationRequest, RetryPolicy
from shared.results import FailureKind

REQUEST = GenerationRequest(prompt="hello", temperature=0.2, top_p=0.9)


@pytest.mark.parametrize(
    "reply,expected",
    [
        (EndpointReply(200, text="ok"), None),
        (EndpointReply(200, text=""), None),
        (EndpointReply(200), FailureKind.FATAL),
        (EndpointReply(429), FailureKind.RATE_LIMITED),
        (EndpointReply(503), FailureKind.SERVICE_UNAVAILABLE),
        (EndpointReply(NO_RESPONSE), FailureKind.SERVICE_UNAVAILABLE),
        (EndpointReply(400), FailureKind.FATAL),
        (EndpointReply(401), FailureKind.FATAL),
        (EndpointReply(500), FailureKind.FATAL),
        (EndpointReply(502), FailureKind.FATAL),
    ],
)
def test_classify_reply(reply, expected):
    assert classify_reply(reply) == expected


def test_retries_transient_failures_then_succeeds(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([429, 503, "Software Development,3"])
    client = make_client(endpoint)

    result = asyncio.run(client.generate(REQUEST))

    assert result.success
    assert result.text == "Software Development,3"
    assert result.attempts == 3
    assert endpoint.calls == 3
    assert recording_sleep.delays == pytest.approx([1.0, 2.0])


def test_exhausted_retries_return_last_transient_failure(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([429, 429, 429])
    client = make_client(endpoint)

    result = asyncio.run(client.generate(REQUEST))

    assert not result.success
    assert result.failure is FailureKind.RATE_LIMITED
    assert result.attempts == 3
    assert endpoint.calls == 3
    assert recording_sleep.delays == pytest.approx([1.0, 2.0])


def test_last_failure_kind_is_reported(scripted_endpoint, make_client):
    endpoint = scripted_endpoint([429, 429, 503])

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.failure is FailureKind.SERVICE_UNAVAILABLE


def test_fatal_failure_is_not_retried(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([EndpointReply(401, detail="invalid api key")])

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.failure is FailureKind.FATAL
    assert result.detail == "invalid api key"
    assert endpoint.calls == 1
    assert recording_sleep.delays == []


def test_success_without_text_is_fatal(scripted_endpoint, make_client):
    endpoint = scripted_endpoint([EndpointReply(200, detail="No text in response envelope")])

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.failure is FailureKind.FATAL
    assert endpoint.calls == 1


def test_endpoint_exception_becomes_fatal_result(scripted_endpoint, make_client):
    endpoint = scripted_endpoint([RuntimeError("socket exploded")])

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.failure is FailureKind.FATAL
    assert "socket exploded" in result.detail


def test_raised_transport_error_is_retried(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([ConnectionResetError("reset by peer"), "ok"])

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.success
    assert result.attempts == 2
    assert recording_sleep.delays == pytest.approx([1.0])


def test_custom_policy_controls_attempts_and_delays(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([503, 503, 503, 503, "done"])
    policy = RetryPolicy(max_attempts=5, base_delay=0.5, backoff_multiplier=3.0)

    result = asyncio.run(make_client(endpoint, policy).generate(REQUEST))

    assert result.success
    assert recording_sleep.delays == pytest.approx([0.5, 1.5, 4.5, 13.5])


def test_single_attempt_policy_never_sleeps(scripted_endpoint, make_client, recording_sleep):
    endpoint = scripted_endpoint([429])

    result = asyncio.run(make_client(endpoint, RetryPolicy(max_attempts=1)).generate(REQUEST))

    assert result.failure is FailureKind.RATE_LIMITED
    assert recording_sleep.delays == []


def test_concurrent_calls_keep_separate_retry_state(recording_sleep):
    attempts: dict[str, int] = {}

    class FlakyOnce:
        async def send(self, request):
            attempts[request.prompt] = attempts.get(request.prompt, 0) + 1
            await asyncio.sleep(0)
            if attempts[request.prompt] == 1:
                return EndpointReply(429)
            return EndpointReply(200, text=request.prompt.upper())

    client = AIClient(FlakyOnce(), policy=RetryPolicy(), sleep=recording_sleep)

    async def run():
        return await asyncio.gather(
            client.generate(GenerationRequest(prompt="a")),
            client.generate(GenerationRequest(prompt="b")),
        )

    first, second = asyncio.run(run())

    assert (first.text, first.attempts) == ("A", 2)
    assert (second.text, second.attempts) == ("B", 2)
    assert recording_sleep.delays == pytest.approx([1.0, 1.0])


def test_default_sleep_waits_real_time(scripted_endpoint):
    endpoint = scripted_endpoint([503, "ok"])
    client = AIClient(endpoint, policy=RetryPolicy(base_delay=0.01))

    result = asyncio.run(client.generate(REQUEST))

    assert result.success


def test_close_delegates_to_endpoint(scripted_endpoint, make_client):
    endpoint = scripted_endpoint([])

    asyncio.run(make_client(endpoint).close())

    assert endpoint.closed


def test_gemini_transport_error_is_retried(make_client, recording_sleep, settings):
    from ai_core.endpoints import GeminiEndpoint

    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    endpoint = GeminiEndpoint(settings=settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    result = asyncio.run(make_client(endpoint).generate(REQUEST))

    assert result.success
    assert result.text == "ok"
    assert recording_sleep.delays == pytest.approx([1.0])
