"""
Service: SubscriptionRegistry
Responsável por mapear símbolos observados para callbacks de preço
Limita símbolos simultâneos, deduplica preços e agenda re-fetches na fila
"""

from threading import RLock
from typing import Dict, List, Optional
import logging

from ticker_watch.config import settings
from ticker_watch.domain.errors import CapacityExceeded
from ticker_watch.domain.quote import PriceCallback, Quote, SymbolMatch, WatchedSymbol
from ticker_watch.infrastructure.queue_manager import ThrottledRetryQueue
from ticker_watch.services.quote_service import QuoteService

logger = logging.getLogger(__name__)


def normalize_symbol(symbol: str) -> str:
    """Símbolos são comparados sem espaços e em maiúsculas"""
    return symbol.strip().upper()


class SubscriptionRegistry:
    """
    Registro de assinaturas de cotação.
    Responsabilidades:
    - watch/unwatch de símbolos (até max_concurrent_symbols)
    - Enfileirar fetch prioritário no watch e re-fetches periódicos
    - Notificar o callback apenas quando o preço muda
    - Ignorar resultados de fetch de símbolos que já não são observados

    Todo o estado é acessado só pelos comandos watch, unwatch e
    on_fetch_result, sob um único lock.
    """

    def __init__(
        self,
        queue: Optional[ThrottledRetryQueue] = None,
        quote_service: Optional[QuoteService] = None,
        max_concurrent_symbols: Optional[int] = None
    ):
        self.queue = queue if queue is not None else ThrottledRetryQueue()
        self.quote_service = quote_service if quote_service is not None else QuoteService()
        self.max_concurrent_symbols = (
            max_concurrent_symbols if max_concurrent_symbols is not None
            else settings.MAX_CONCURRENT_SYMBOLS
        )
        self._watched: Dict[str, WatchedSymbol] = {}
        self._lock = RLock()

    # ═══════════════════════════════════════════════════════════
    # COMANDOS
    # ═══════════════════════════════════════════════════════════

    def watch(self, symbol: str, callback: PriceCallback) -> bool:
        """
        Passa a observar um símbolo.

        Args:
            symbol: Símbolo do ticker
            callback: Chamado com o novo preço a cada mudança

        Returns:
            bool: False se o símbolo já era observado (nada muda)

        Raises:
            CapacityExceeded: limite de símbolos simultâneos atingido
        """
        symbol = normalize_symbol(symbol)

        with self._lock:
            if symbol in self._watched:
                logger.warning(f"Symbol {symbol} is already being watched.")
                return False

            if len(self._watched) >= self.max_concurrent_symbols:
                raise CapacityExceeded(self.max_concurrent_symbols)

            watched = WatchedSymbol(symbol=symbol, callback=callback)
            self._watched[symbol] = watched
            self._schedule_fetch(watched, priority=True)
            count = len(self._watched)

        logger.info(f"👁 Observando {symbol} ({count}/{self.max_concurrent_symbols})")
        return True

    def unwatch(self, symbol: str) -> bool:
        """
        Deixa de observar um símbolo.

        Fetches já enfileirados ou em andamento são ignorados ao terminar.

        Returns:
            bool: False se o símbolo não era observado
        """
        symbol = normalize_symbol(symbol)

        with self._lock:
            watched = self._watched.pop(symbol, None)

        if watched is None:
            logger.warning(f"Symbol {symbol} is not being watched.")
            return False

        logger.info(f"✓ {symbol} removido das assinaturas")
        return True

    def on_fetch_result(self, watched: WatchedSymbol, price: float) -> bool:
        """
        Aplica o resultado de um fetch à assinatura que o originou.

        Args:
            watched: Assinatura ativa quando o fetch foi enfileirado
            price: Preço validado

        Returns:
            bool: True se o callback foi chamado
        """
        with self._lock:
            if self._watched.get(watched.symbol) is not watched:
                logger.debug(f"Resultado descartado: {watched.symbol} não é mais observado")
                return False

            if price == watched.last_price:
                return False

            watched.last_price = price
            try:
                watched.callback(price)
            except Exception:
                logger.exception(f"Erro no callback de {watched.symbol}")
            return True

    # ═══════════════════════════════════════════════════════════
    # FETCH
    # ═══════════════════════════════════════════════════════════

    def refresh_all(self) -> int:
        """
        Enfileira um re-fetch (baixa prioridade) por símbolo observado.

        Símbolos com fetch ainda pendente na fila são pulados.

        Returns:
            int: quantidade de fetches enfileirados
        """
        with self._lock:
            due = [
                w for w in self._watched.values()
                if w.pending_entry is None or w.pending_entry.is_done
            ]
            for watched in due:
                self._schedule_fetch(watched, priority=False)

        if due:
            logger.debug(f"Re-fetch enfileirado para {len(due)} símbolos")
        return len(due)

    def _schedule_fetch(self, watched: WatchedSymbol, priority: bool):
        """Enfileira o fetch-and-notify de uma assinatura (chamado com o lock)"""
        watched.pending_entry = self.queue.enqueue(
            lambda: self._fetch_and_notify(watched),
            priority=priority,
            label=f"quote:{watched.symbol}"
        )

    def _fetch_and_notify(self, watched: WatchedSymbol):
        """Ação executada pela fila: busca, valida e notifica se mudou"""
        if not self.is_subscription_active(watched):
            logger.debug(f"Fetch ignorado: {watched.symbol} não é mais observado")
            return

        quote = self.quote_service.fetch_quote_with_retry(watched.symbol)
        self.on_fetch_result(watched, quote.current_price)

    # ═══════════════════════════════════════════════════════════
    # CONSULTAS
    # ═══════════════════════════════════════════════════════════

    def get_quote(self, symbol: str) -> Quote:
        """Cotação única, sem assinatura (falhas vão para o chamador)"""
        return self.quote_service.get_quote(normalize_symbol(symbol))

    def search(self, query: str) -> List[SymbolMatch]:
        """Busca de símbolos; nunca lança exceção"""
        return self.quote_service.search(query)

    def is_watching(self, symbol: str) -> bool:
        with self._lock:
            return normalize_symbol(symbol) in self._watched

    def is_subscription_active(self, watched: WatchedSymbol) -> bool:
        with self._lock:
            return self._watched.get(watched.symbol) is watched

    def watched_symbols(self) -> List[str]:
        with self._lock:
            return list(self._watched)

    def last_price(self, symbol: str) -> Optional[float]:
        with self._lock:
            watched = self._watched.get(normalize_symbol(symbol))
            return watched.last_price if watched else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._watched)

    def close(self):
        """Remove todas as assinaturas"""
        with self._lock:
            count = len(self._watched)
            self._watched.clear()
        logger.info(f"✓ {count} assinaturas removidas")
