"""
Scheduler: QuotePoller
Loop em background que, a cada REFRESH_INTERVAL_SECONDS:
1. Pede ao registro um re-fetch de cada símbolo observado
2. Os fetches entram na cauda da fila (baixa prioridade)
3. A fila despacha respeitando o limite de vazão
"""

from threading import Event, Thread
from typing import Optional

from ticker_watch.config import settings
from ticker_watch.infrastructure.logger import get_logger
from ticker_watch.services.subscription_service import SubscriptionRegistry

logger = get_logger(__name__, component="poller")


class QuotePoller:
    """
    Poller de re-fetch periódico.
    Rodando como thread daemon até stop().
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        interval_seconds: Optional[float] = None
    ):
        self.registry = registry
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None
            else settings.REFRESH_INTERVAL_SECONDS
        )
        self.poll_thread: Optional[Thread] = None
        self.cycles = 0
        self._stop_event = Event()

    @property
    def is_running(self) -> bool:
        return self.poll_thread is not None and self.poll_thread.is_alive()

    def start(self) -> bool:
        """
        Inicia o poller em thread separada.

        Returns:
            bool: False se já estava rodando
        """
        if self.is_running:
            logger.warning("Poller já está rodando")
            return False

        self._stop_event.clear()
        self.poll_thread = Thread(
            target=self._poll_loop,
            name="ticker-watch-poller",
            daemon=True
        )
        self.poll_thread.start()
        logger.info(f"✓ Poller iniciado (intervalo {self.interval_seconds}s)")
        return True

    def poll_once(self) -> int:
        """
        Executa um ciclo de re-fetch.

        Returns:
            int: fetches enfileirados
        """
        self.cycles += 1
        return self.registry.refresh_all()

    def _poll_loop(self):
        """Loop do poller (rodando em thread)"""
        while not self._stop_event.wait(self.interval_seconds):
            try:
                queued = self.poll_once()
                logger.debug(f"Ciclo {self.cycles}: {queued} re-fetches enfileirados")
            except Exception as e:
                logger.error(f"✗ Erro no ciclo de re-fetch: {e}")

    def stop(self, timeout: Optional[float] = None):
        """Para o poller gracefully"""
        self._stop_event.set()
        if self.poll_thread is not None:
            self.poll_thread.join(timeout)
        logger.info("✓ Poller parado")
