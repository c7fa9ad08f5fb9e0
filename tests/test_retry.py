import httpx
import pytest

from daisy_orchestrator.domain.errors import BackendError
from daisy_orchestrator.infrastructure.agent_engine.retry import RetryConfig, RetryPolicy, extract_status_code
from daisy_orchestrator.infrastructure.config.settings import TransportSettings


def test_backoff_grows_and_is_capped():
    policy = RetryPolicy(RetryConfig(base_delay=1.0, max_delay=3.0, jitter=0.0))
    assert [policy.get_delay(n) for n in range(4)] == [1.0, 2.0, 3.0, 3.0]


def test_sleeps_between_attempts_only():
    pauses = []
    attempts = []

    def operation():
        attempts.append(1)
        if len(attempts) < 3:
            raise BackendError(status_code=502)
        return "done"

    policy = RetryPolicy(RetryConfig(max_retries=3, base_delay=0.5, jitter=0.0), sleep=pauses.append)
    assert policy.execute(operation) == "done"
    assert pauses == [0.5, 1.0]


def test_non_retryable_error_raises_immediately():
    attempts = []

    def operation():
        attempts.append(1)
        raise ValueError("bad")

    with pytest.raises(ValueError):
        RetryPolicy(RetryConfig(max_retries=5), sleep=lambda _: None).execute(operation)
    assert len(attempts) == 1


def test_extract_status_code_shapes():
    request = httpx.Request("GET", "https://x")
    status_error = httpx.HTTPStatusError("x", request=request, response=httpx.Response(418, request=request))
    assert extract_status_code(status_error) == 418
    assert extract_status_code(BackendError(status_code=503)) == 503
    assert extract_status_code(RuntimeError("x")) is None


def test_config_from_settings():
    settings = TransportSettings(max_retries=4, backoff_base=0.25, retryable_status_codes="500, 503")
    config = RetryConfig.from_settings(settings)
    assert config.max_retries == 4
    assert config.base_delay == 0.25
    assert config.retryable_status_codes == [500, 503]
    stats = RetryPolicy(config).get_retry_statistics()
    assert stats["retryable_status_codes"] == [500, 503]
