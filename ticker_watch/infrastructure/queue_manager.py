"""
Infrastructure: ThrottledRetryQueue
Portão único de admissão para todas as requisições de cotação
Suporta limite de vazão, retry com backoff exponencial + jitter e dead letters
"""

import logging
import time
from collections import deque
from datetime import datetime, timezone
from threading import Condition, Thread, current_thread
from typing import Callable, Optional, List

from ticker_watch.config import settings
from ticker_watch.domain.dispatch_statistics import DeadLetter, DispatchStatistics
from ticker_watch.domain.queue_entry import QueueEntry
from ticker_watch.domain.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class ThrottledRetryQueue:
    """
    Fila de requisições com vazão limitada.
    Responsabilidades:
    - Enfileirar ações sem bloquear o chamador
    - Despachar uma ação por vez, respeitando o intervalo mínimo
    - Reenfileirar na cabeça falhas retentáveis (429/5xx) após backoff
    - Descartar falhas terminais no dead letter (log + estatísticas)

    Um único loop de despacho fica ativo por vez. Ele para quando a fila
    esvazia e é rearmado pelo próximo enqueue.
    """

    def __init__(
        self,
        max_requests_per_second: Optional[int] = None,
        min_interval_ms: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        on_terminal_failure: Optional[Callable[[QueueEntry, BaseException], None]] = None,
        autostart: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        dead_letter_history: Optional[int] = None
    ):
        self.min_interval_ms = (
            min_interval_ms if min_interval_ms is not None else settings.MIN_DISPATCH_INTERVAL_MS
        )
        self.set_rate_limit(
            max_requests_per_second if max_requests_per_second is not None
            else settings.MAX_REQUESTS_PER_SECOND
        )

        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy.for_queue(settings)
        self.on_terminal_failure = on_terminal_failure
        self.autostart = autostart
        self.clock = clock
        self.sleep = sleep

        self.stats = DispatchStatistics()
        self.dead_letters = deque(
            maxlen=dead_letter_history if dead_letter_history is not None else settings.DEAD_LETTER_HISTORY
        )

        self._pending = deque()
        self._cond = Condition()
        self.is_processing = False
        self.is_closed = False
        self.last_dispatch_time: Optional[float] = None
        self.dispatch_thread: Optional[Thread] = None

    # ═══════════════════════════════════════════════════════════
    # CONFIGURAÇÃO
    # ═══════════════════════════════════════════════════════════

    def set_rate_limit(self, max_requests_per_second: int):
        """
        Altera a vazão máxima.

        O intervalo efetivo nunca fica abaixo de min_interval_ms.
        """
        if max_requests_per_second <= 0:
            raise ValueError("max_requests_per_second must be positive")
        self.max_requests_per_second = max_requests_per_second
        interval_ms = max(self.min_interval_ms, 1000.0 / max_requests_per_second)
        self.interval = interval_ms / 1000.0
        logger.debug(f"Intervalo de despacho: {interval_ms:.0f}ms")

    @property
    def pending_count(self) -> int:
        """Quantidade de entradas aguardando despacho"""
        with self._cond:
            return len(self._pending)

    def __len__(self) -> int:
        return self.pending_count

    # ═══════════════════════════════════════════════════════════
    # PRODUÇÃO
    # ═══════════════════════════════════════════════════════════

    def enqueue(
        self,
        action: Callable[[], None],
        priority: bool = False,
        label: str = "request"
    ) -> QueueEntry:
        """
        Enfileira uma ação. Retorna imediatamente.

        Args:
            action: Trabalho a executar no loop de despacho
            priority: True = cabeça da fila, False = cauda
            label: Nome para logs

        Returns:
            QueueEntry: entrada criada
        """
        entry = QueueEntry(action=action, priority=priority, label=label)
        if self._push(entry, head=priority):
            logger.debug(f"✓ Enfileirado: {entry}")
        return entry

    def _push(self, entry: QueueEntry, head: bool) -> bool:
        """Insere a entrada e rearma o loop se necessário"""
        with self._cond:
            if self.is_closed:
                logger.warning(f"Fila fechada, descartando {entry.label}")
                entry.mark_done()
                return False

            if entry.retry_count == 0:
                self.stats.enqueued += 1

            if head:
                self._pending.appendleft(entry)
            else:
                self._pending.append(entry)

            start_worker = self.autostart and not self.is_processing
            if start_worker:
                self.is_processing = True

        if start_worker:
            self._start_worker()
        return True

    def _start_worker(self):
        """Inicia o loop de despacho em thread separada"""
        self.dispatch_thread = Thread(
            target=self._drain,
            name="ticker-watch-dispatch",
            daemon=True
        )
        self.dispatch_thread.start()
        logger.debug("✓ Loop de despacho iniciado")

    # ═══════════════════════════════════════════════════════════
    # DESPACHO
    # ═══════════════════════════════════════════════════════════

    def process_queue(self) -> bool:
        """
        Drena a fila no thread atual até esvaziar.

        Returns:
            bool: False se outro loop já está ativo
        """
        with self._cond:
            if self.is_processing:
                return False
            self.is_processing = True
        self._drain()
        return True

    def _drain(self):
        """Loop de despacho: uma entrada por vez, até a fila esvaziar"""
        while True:
            with self._cond:
                if self.is_closed or not self._pending:
                    self.is_processing = False
                    self._cond.notify_all()
                    return

            self._wait_for_slot()

            with self._cond:
                if self.is_closed or not self._pending:
                    continue
                entry = self._pending.popleft()

            self._dispatch(entry)

    def _wait_for_slot(self):
        """Espera até now - last_dispatch_time >= intervalo"""
        if self.last_dispatch_time is None:
            return
        remaining = self.interval - (self.clock() - self.last_dispatch_time)
        if remaining > 0:
            self.sleep(remaining)

    def _dispatch(self, entry: QueueEntry):
        """Executa uma tentativa da entrada"""
        self.stats.dispatched += 1
        self.stats.last_dispatch_at = datetime.now(timezone.utc)
        try:
            entry.run()
        except Exception as e:
            self.last_dispatch_time = self.clock()
            self._handle_failure(entry, e)
        else:
            self.last_dispatch_time = self.clock()
            entry.mark_done()
            self.stats.succeeded += 1
            logger.debug(f"✓ Despachado: {entry.label} (retry {entry.retry_count})")

    def _handle_failure(self, entry: QueueEntry, error: Exception):
        """Reenfileira falhas retentáveis ou descarta no dead letter"""
        if not self.retry_policy.should_retry(error, entry.retry_count):
            self.handle_dead_letter(entry, error)
            return

        delay = self.retry_policy.delay_for(entry.retry_count)
        logger.warning(
            f"🔄 Retry {entry.retry_count + 1}/{self.retry_policy.max_retries} "
            f"de {entry.label} em {delay:.2f}s: {error!r}"
        )
        self.sleep(delay)

        entry.mark_retry(error)
        self.stats.retried += 1
        self._push(entry, head=True)

    def handle_dead_letter(self, entry: QueueEntry, error: BaseException):
        """
        Registra entrada que falhou permanentemente.

        Args:
            entry: Entrada descartada
            error: Última falha
        """
        dead = DeadLetter(
            entry_id=entry.entry_id,
            label=entry.label,
            reason=repr(error),
            retry_count=entry.retry_count,
            status=getattr(error, 'status', None),
        )
        entry.mark_done()
        self.dead_letters.append(dead)
        self.stats.dead_lettered += 1

        logger.error(
            f"💀 Entrada descartada: {entry.label} - {error!r} "
            f"(após {entry.retry_count} retries)"
        )

        if self.on_terminal_failure is not None:
            try:
                self.on_terminal_failure(entry, error)
            except Exception:
                logger.exception(f"Erro no hook de falha terminal para {entry.label}")

    # ═══════════════════════════════════════════════════════════
    # CICLO DE VIDA
    # ═══════════════════════════════════════════════════════════

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Bloqueia até a fila esvaziar e o loop parar.

        Returns:
            bool: True se ficou ociosa dentro do timeout
        """
        if current_thread() is self.dispatch_thread:
            raise RuntimeError("wait_until_idle called from the dispatch thread")
        with self._cond:
            return self._cond.wait_for(
                lambda: self.is_closed or (not self._pending and not self.is_processing),
                timeout=timeout
            )

    def recent_dead_letters(self) -> List[DeadLetter]:
        """Retorna as falhas terminais mais recentes"""
        return list(self.dead_letters)

    def health_check(self) -> bool:
        """
        Verifica saúde do loop de despacho.

        Returns:
            bool: True se OK
        """
        if self.is_closed:
            logger.error("Fila fechada")
            return False
        if self.is_processing and self.autostart and self.dispatch_thread is not None:
            if not self.dispatch_thread.is_alive():
                logger.error("Loop de despacho morreu com entradas pendentes")
                return False
        return True

    def close(self):
        """Para de aceitar trabalho e descarta entradas pendentes"""
        with self._cond:
            if self.is_closed:
                return
            self.is_closed = True
            dropped = len(self._pending)
            for entry in self._pending:
                entry.mark_done()
            self._pending.clear()
            self._cond.notify_all()
        logger.info(f"✓ Fila fechada ({dropped} entradas descartadas)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
