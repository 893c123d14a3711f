import pytest

from ticker_watch.config import Settings
from ticker_watch.domain.errors import (
    ClientError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from ticker_watch.domain.retry_policy import RetryPolicy, is_retryable_status, is_transient


@pytest.mark.parametrize("status,expected", [
    (429, True),
    (500, True),
    (503, True),
    (400, False),
    (404, False),
    (None, False),
])
def test_queue_predicate_only_retries_rate_limits_and_server_errors(status, expected):
    assert is_retryable_status(TransportError("boom", status)) is expected


def test_queue_predicate_rejects_non_transport_errors():
    assert not is_retryable_status(ValueError("bug"))
    assert not is_retryable_status(ValidationError("bad price"))


def test_fetch_predicate_aborts_on_any_4xx():
    assert not is_transient(ClientError("nope", 404))
    assert not is_transient(RateLimitedError("slow down", 429))
    assert is_transient(ServerError("down", 502))
    assert is_transient(TransportError("connection reset"))
    assert is_transient(ValidationError("NaN"))


def test_from_status_builds_matching_subclass():
    assert isinstance(TransportError.from_status(429), RateLimitedError)
    assert isinstance(TransportError.from_status(503), ServerError)
    assert isinstance(TransportError.from_status(404), ClientError)
    assert TransportError.from_status(404).status == 404


def test_queue_backoff_doubles_with_jitter_and_caps():
    policy = RetryPolicy.for_queue(Settings(), rng=lambda: 0.25)

    assert policy.delay_for(0) == pytest.approx(1.25)
    assert policy.delay_for(1) == pytest.approx(2.25)
    assert policy.delay_for(2) == pytest.approx(4.25)
    assert policy.delay_for(10) == pytest.approx(30.25)


def test_queue_policy_stops_after_max_retries():
    policy = RetryPolicy.for_queue(Settings())
    error = ServerError("down", 500)

    assert policy.should_retry(error, 0)
    assert policy.should_retry(error, 2)
    assert not policy.should_retry(error, 3)


def test_fetch_backoff_is_power_of_two_seconds_without_jitter():
    policy = RetryPolicy.for_fetch(Settings())

    assert policy.max_retries == 2
    assert policy.delay_for(0) == 2
    assert policy.delay_for(1) == 4
    assert policy.jitter == 0
