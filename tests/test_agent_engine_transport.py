import json

import httpx
import pytest

from daisy_orchestrator.domain.errors import BackendError, BackendTimeoutError
from daisy_orchestrator.domain.models.conversation import MessageRole, OutboundRequest, Turn
from daisy_orchestrator.domain.models.credentials import Credential
from daisy_orchestrator.domain.models.events import StreamEvent
from daisy_orchestrator.domain.services.event_decoder import EventDecoder
from daisy_orchestrator.infrastructure.agent_engine.retry import RetryConfig, RetryPolicy
from daisy_orchestrator.infrastructure.agent_engine.transport import AgentEngineTransport, parse_single_response
from daisy_orchestrator.infrastructure.config.settings import BackendSettings


URL = "https://agent.example/chat"


def _request() -> OutboundRequest:
    return OutboundRequest(
        message="Who owns the masters?",
        session_id="session-1-abcdefghi",
        user_id="uid-1",
        previous_messages=[Turn(MessageRole.USER, "hi"), Turn(MessageRole.ASSISTANT, "hello")],
    )


def _transport(handler, **retry) -> AgentEngineTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    policy = RetryPolicy(RetryConfig(**retry), sleep=lambda _: None)
    return AgentEngineTransport(BackendSettings(backend_url=URL), http_client=client, retry_policy=policy)


def _sse(*texts: str) -> bytes:
    return b"".join(
        f"data: {json.dumps({'content': {'parts': [{'text': t}]}})}\n".encode("utf-8") for t in texts
    )


def test_streamed_reply_with_bearer_and_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        seen["url"] = str(request.url)
        body = _sse("Hel", "lo")
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=iter([body[:10], body[10:]]))

    transport = _transport(handler)
    with transport.open(_request(), Credential(token="tok-1")) as reply:
        assert reply.is_stream
        events = list(EventDecoder().decode(reply.stream))

    assert events == [StreamEvent.text("Hel"), StreamEvent.text("lo")]
    assert seen["auth"] == "Bearer tok-1"
    assert seen["url"] == URL
    assert seen["body"] == {
        "message": "Who owns the masters?",
        "sessionId": "session-1-abcdefghi",
        "context": {
            "userId": "uid-1",
            "previousMessages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
        },
    }


def test_single_json_reply():
    def handler(request):
        return httpx.Response(200, json={
            "response": "Publishing splits vary.",
            "metadata": {"model": "gemini-1.5-flash", "processingTime": 812, "sessionId": "s"},
        })

    with _transport(handler).open(_request(), Credential(token="t")) as reply:
        assert not reply.is_stream
        assert reply.text == "Publishing splits vary."
        assert reply.metadata["model"] == "gemini-1.5-flash"


def test_callable_result_envelope():
    reply = parse_single_response({"result": {"response": "ok"}})
    assert reply.text == "ok"


def test_error_payload_in_json_reply():
    def handler(request):
        return httpx.Response(200, json={"error": {"status": "UNAUTHENTICATED", "message": "Authentication required"}})

    with pytest.raises(BackendError) as exc:
        with _transport(handler).open(_request(), Credential(token="t")):
            pass
    assert exc.value.status == "UNAUTHENTICATED"


def test_missing_response_text_is_an_error():
    with pytest.raises(BackendError):
        parse_single_response({"metadata": {}})


def test_http_error_status_is_extracted_and_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}})

    with pytest.raises(BackendError) as exc:
        with _transport(handler, max_retries=3).open(_request(), Credential(token="t")):
            pass
    assert exc.value.status_code == 429
    assert exc.value.status == "RESOURCE_EXHAUSTED"
    assert len(calls) == 1


def test_retryable_status_then_success():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=_sse("ok"))

    with _transport(handler, max_retries=2).open(_request(), Credential(token="t")) as reply:
        assert [e.value for e in EventDecoder().decode(reply.stream)] == ["ok"]
    assert len(calls) == 2


def test_retries_exhausted():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    with pytest.raises(BackendError) as exc:
        with _transport(handler, max_retries=2).open(_request(), Credential(token="t")):
            pass
    assert exc.value.status_code == 503
    assert len(calls) == 3


def test_connect_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("refused")
        return httpx.Response(200, json={"response": "ok"})

    with _transport(handler, max_retries=1).open(_request(), Credential(token="t")) as reply:
        assert reply.text == "ok"
    assert len(calls) == 2


def test_read_timeout_becomes_backend_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow")

    with pytest.raises(BackendTimeoutError):
        with _transport(handler, max_retries=2).open(_request(), Credential(token="t")):
            pass


def test_agent_engine_url_from_settings():
    settings = BackendSettings(project_id="proj", engine_id="123", location="europe-west4")
    assert settings.url == (
        "https://us-central1-aiplatform.googleapis.com/v1beta1/projects/proj"
        "/locations/europe-west4/reasoningEngines/123:streamQuery"
    )


def test_missing_url_is_rejected():
    with pytest.raises(ValueError):
        AgentEngineTransport(BackendSettings(project_id=None, engine_id=None, backend_url=None))
