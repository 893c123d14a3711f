"""
main.py - Entry point da aplicação
Observa os tickers configurados e registra cada mudança de preço no log
"""

import signal
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from ticker_watch.config import settings
from ticker_watch.domain.errors import CapacityExceeded
from ticker_watch.infrastructure.logger import setup_logging, get_logger
from ticker_watch.infrastructure.queue_manager import ThrottledRetryQueue
from ticker_watch.infrastructure.quote_client import QuoteClient
from ticker_watch.scheduler.poller import QuotePoller
from ticker_watch.services.quote_service import QuoteService
from ticker_watch.services.subscription_service import SubscriptionRegistry

logger = get_logger(__name__, component="app")


class TickerWatchApp:
    """
    Aplicação principal: liga cliente, fila, registro e poller.
    Rodando até SIGTERM/SIGINT.
    """

    def __init__(self, client: Optional[QuoteClient] = None):
        self.client = client if client is not None else QuoteClient()
        self.queue = ThrottledRetryQueue()
        self.registry = SubscriptionRegistry(
            queue=self.queue,
            quote_service=QuoteService(client=self.client)
        )
        self.poller = QuotePoller(self.registry)
        self.running = True

    def start(self) -> bool:
        """
        Inicia as assinaturas e o poller.

        Returns:
            bool: True se ao menos um ticker foi observado
        """
        logger.info("=" * 60)
        logger.info("🚀 INICIANDO TICKER WATCH")
        logger.info("=" * 60)

        watched = 0
        for symbol in settings.tickers_list:
            try:
                if self.registry.watch(symbol, self._price_logger(symbol)):
                    watched += 1
            except CapacityExceeded as e:
                logger.error(f"✗ {symbol} ignorado: {e}")

        if watched == 0:
            logger.error("✗ Nenhum ticker observado")
            return False

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.poller.start()
        return True

    @staticmethod
    def _price_logger(symbol: str):
        def on_price(price: float):
            logger.info(f"💲 {symbol}: {price}")
        return on_price

    def _signal_handler(self, sig, frame):
        """Handler para SIGTERM/SIGINT - graceful shutdown"""
        logger.info("📍 Recebido sinal de encerramento (SIGTERM/SIGINT)")
        self.stop()
        sys.exit(0)

    def stop(self):
        """Para poller, registro e fila"""
        if not self.running:
            return
        logger.info("🛑 Encerrando...")
        self.running = False
        self.poller.stop(timeout=5)
        self.registry.close()
        self.queue.close()
        self.client.close()
        logger.info(f"✓ Encerrado. Estatísticas: {self.queue.stats.to_dict()}")

    def run(self):
        """Loop principal"""
        if not self.start():
            sys.exit(1)

        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Interrompido pelo usuário")
            self.stop()


def health_check(client: Optional[QuoteClient] = None) -> dict:
    """
    Health check do sistema.

    Returns:
        dict com status de cada componente
    """
    status = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'components': {
            'quote_api': False,
        }
    }

    client = client if client is not None else QuoteClient()
    try:
        status['components']['quote_api'] = client.health_check()
    finally:
        client.close()

    status['healthy'] = all(status['components'].values())
    return status


def main():
    """Entry point da aplicação"""
    setup_logging()

    logger.info("Ticker Watch v1.0")
    logger.info("Configurações:")
    logger.info(f"  - API: {settings.API_BASE_URL}")
    logger.info(f"  - Tickers: {settings.tickers_list}")
    logger.info(f"  - Requisições/s: {settings.MAX_REQUESTS_PER_SECOND}")
    logger.info(f"  - Re-fetch a cada: {settings.REFRESH_INTERVAL_SECONDS}s")

    app = TickerWatchApp()
    app.run()


if __name__ == '__main__':
    main()
