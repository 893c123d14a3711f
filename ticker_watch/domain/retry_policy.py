"""
Modelo de Domínio: Retry Policy
Política de retry compartilhada pela fila e pelo fetch de cotações
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from ticker_watch.domain.errors import TransportError


def is_retryable_status(error: BaseException) -> bool:
    """
    Predicado da fila: só 429 e 5xx são retentados.

    Falhas sem status (rede, payload inválido) e demais 4xx são terminais.
    """
    if not isinstance(error, TransportError) or error.status is None:
        return False
    return error.status == 429 or error.status >= 500


def is_transient(error: BaseException) -> bool:
    """
    Predicado do fetch: qualquer falha de transporte exceto 4xx.

    Inclui falhas de rede e payloads inválidos.
    """
    return isinstance(error, TransportError) and not error.is_client_error


@dataclass
class RetryPolicy:
    """
    Política de retry: limite de tentativas, função de backoff e predicado.

    `retry_count` é sempre o número de retries já feitos (0 antes do primeiro).
    Delay = min(base_delay * exponent_base^retry_count, max_delay) + U(0, jitter)
    """

    max_retries: int
    base_delay: float
    exponent_base: float = 2.0
    max_delay: Optional[float] = None
    jitter: float = 0.0
    retry_on: Callable[[BaseException], bool] = is_retryable_status
    rng: Callable[[], float] = field(default=random.random, repr=False)

    def should_retry(self, error: BaseException, retry_count: int) -> bool:
        """Verifica se ainda há retry disponível e se o erro é retentável"""
        return retry_count < self.max_retries and self.retry_on(error)

    def delay_for(self, retry_count: int) -> float:
        """Calcula o backoff (em segundos) antes do próximo retry"""
        delay = self.base_delay * (self.exponent_base ** retry_count)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        if self.jitter > 0:
            delay += self.rng() * self.jitter
        return delay

    @classmethod
    def for_queue(cls, settings, rng: Optional[Callable[[], float]] = None) -> 'RetryPolicy':
        """Política da fila: 1s, 2s, 4s... até 30s, com jitter de até 1s"""
        return cls(
            max_retries=settings.QUEUE_MAX_RETRIES,
            base_delay=settings.BASE_RETRY_DELAY_MS / 1000.0,
            max_delay=settings.MAX_BACKOFF_DELAY_MS / 1000.0,
            jitter=settings.RETRY_JITTER_MS / 1000.0,
            retry_on=is_retryable_status,
            rng=rng or random.random,
        )

    @classmethod
    def for_fetch(cls, settings) -> 'RetryPolicy':
        """Política do fetch: base^tentativa segundos, sem jitter, aborta em 4xx"""
        base = float(settings.FETCH_BACKOFF_BASE)
        return cls(
            max_retries=max(settings.FETCH_RETRY_COUNT - 1, 0),
            base_delay=base,
            exponent_base=base,
            retry_on=is_transient,
        )
