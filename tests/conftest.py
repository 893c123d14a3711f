"""
tests/conftest.py
──────────────────
Fixtures compartilhadas da suíte.

Fixtures
--------
clock
    ``FakeClock``: relógio monotônico falso; ``clock.sleep`` avança o tempo
    e registra cada espera, então nenhum teste dorme de verdade.

queue
    ``ThrottledRetryQueue`` sem thread de despacho (``autostart=False``),
    drenada explicitamente com ``queue.process_queue()``.

stub_client / quote_service / registry
    Cliente de cotações roteirizado e os serviços montados sobre ele.
"""

import pytest
import pytz

from fakes import FakeClock, StubQuoteClient
from ticker_watch.domain.retry_policy import RetryPolicy, is_retryable_status
from ticker_watch.infrastructure.queue_manager import ThrottledRetryQueue
from ticker_watch.services.quote_service import QuoteService
from ticker_watch.services.subscription_service import SubscriptionRegistry


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def queue_policy() -> RetryPolicy:
    """Política da fila com jitter fixo em 0.5s"""
    return RetryPolicy(
        max_retries=3,
        base_delay=1.0,
        max_delay=30.0,
        jitter=1.0,
        retry_on=is_retryable_status,
        rng=lambda: 0.5,
    )


@pytest.fixture
def queue(clock, queue_policy) -> ThrottledRetryQueue:
    return ThrottledRetryQueue(
        max_requests_per_second=20,
        min_interval_ms=100,
        retry_policy=queue_policy,
        autostart=False,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def stub_client() -> StubQuoteClient:
    return StubQuoteClient()


@pytest.fixture
def quote_service(stub_client, clock) -> QuoteService:
    return QuoteService(client=stub_client, sleep=clock.sleep, tz=pytz.utc)


@pytest.fixture
def registry(queue, quote_service) -> SubscriptionRegistry:
    return SubscriptionRegistry(queue=queue, quote_service=quote_service, max_concurrent_symbols=25)
