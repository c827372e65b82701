import asyncio
from typing import Callable, Union

import pytest

from ai_core.client import AIClient
from ai_core.endpoints import EndpointReply
from shared.config import Settings
from shared.models import Candidate, CandidateProjectView, GenerationRequest, Job, RetryPolicy

Reply = Union[EndpointReply, int, str, Exception]


def _to_reply(reply: Reply) -> EndpointReply:
    if isinstance(reply, Exception):
        raise reply
    if isinstance(reply, int):
        return EndpointReply(status_code=reply, detail=f"HTTP {reply}")
    if isinstance(reply, str):
        return EndpointReply(status_code=200, text=reply)
    return reply


class ScriptedEndpoint:
    """Returns the scripted replies in order: str is a 200 body, int a status code."""

    def __init__(self, replies: list[Reply]):
        self.replies = list(replies)
        self.requests: list[GenerationRequest] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def send(self, request: GenerationRequest) -> EndpointReply:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError("unexpected generation call")
        return _to_reply(self.replies.pop(0))

    async def close(self) -> None:
        self.closed = True


class RoutingEndpoint:
    """Picks the reply whose key appears in the prompt; order-independent."""

    def __init__(self, routes: dict[str, Reply], on_send: Callable[[GenerationRequest], None] = None):
        self.routes = routes
        self.on_send = on_send
        self.requests: list[GenerationRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def send(self, request: GenerationRequest) -> EndpointReply:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.on_send:
                self.on_send(request)
            for key, reply in self.routes.items():
                if key in request.prompt:
                    return _to_reply(reply)
            raise AssertionError("no route for prompt")
        finally:
            self.in_flight -= 1


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scripted_endpoint():
    return ScriptedEndpoint


@pytest.fixture
def routing_endpoint():
    return RoutingEndpoint


@pytest.fixture
def make_client(recording_sleep):
    def make(endpoint, policy: RetryPolicy = None) -> AIClient:
        return AIClient(endpoint, policy=policy or RetryPolicy(), sleep=recording_sleep)

    return make


@pytest.fixture
def backend_job() -> Job:
    return Job(
        job_id="JOB-1",
        title="Backend Engineer",
        required_skills=frozenset({"Java", "Spring Boot", "PostgreSQL"}),
    )


@pytest.fixture
def make_candidate():
    def make(candidate_id: str, *projects: tuple[str, list[str]]) -> Candidate:
        return Candidate(
            candidate_id=candidate_id,
            name=f"Candidate {candidate_id}",
            projects=tuple(
                CandidateProjectView(
                    name=name,
                    link=f"https://github.com/{candidate_id}/{name}",
                    declared_skills=frozenset(skills),
                )
                for name, skills in projects
            ),
        )

    return make
