"""
Service: QuoteService
Responsável por buscar cotações e resultados de busca no endpoint externo
"""

from typing import List, Optional, Callable
import time
import logging

from pydantic import ValidationError as SchemaError

from ticker_watch.config import settings
from ticker_watch.domain.errors import SearchFailure, TransportError
from ticker_watch.domain.quote import Quote, SymbolMatch
from ticker_watch.domain.retry_policy import RetryPolicy
from ticker_watch.infrastructure.quote_client import QuoteClient


logger = logging.getLogger(__name__)


class QuoteService:
    """
    Serviço de busca de cotações.
    Implementa retry direto por fetch, validação do preço e busca com fallback.
    """

    def __init__(
        self,
        client: Optional[QuoteClient] = None,
        fetch_policy: Optional[RetryPolicy] = None,
        search_limit: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        tz=None
    ):
        self.client = client if client is not None else QuoteClient()
        self.fetch_policy = fetch_policy if fetch_policy is not None else RetryPolicy.for_fetch(settings)
        self.search_limit = search_limit if search_limit is not None else settings.SEARCH_RESULT_LIMIT
        self.sleep = sleep
        self.tz = tz if tz is not None else settings.tz

    def fetch_quote_with_retry(self, symbol: str) -> Quote:
        """
        Busca a cotação com retry exponencial direto (sem jitter).

        Aborta na primeira resposta 4xx. Payload sem preço válido conta
        como falha de transporte e é retentado.

        Args:
            symbol: Símbolo do ticker

        Returns:
            Quote: cotação validada

        Raises:
            TransportError: última falha, após esgotar as tentativas
        """
        attempts = self.fetch_policy.max_retries + 1
        retry_count = 0

        while True:
            attempt = retry_count + 1
            try:
                payload = self.client.fetch_quote(symbol)
                return Quote.from_payload(symbol, payload, self.tz)

            except TransportError as e:
                if e.is_client_error:
                    logger.error(f"✗ Erro de cliente ao buscar {symbol}: status={e.status}")
                    raise

                logger.warning(f"⚠ Tentativa {attempt}/{attempts} falhou para {symbol}: {e!r}")

                if not self.fetch_policy.should_retry(e, retry_count):
                    raise

                backoff = self.fetch_policy.delay_for(retry_count)
                logger.debug(f"Retry de {symbol} em {backoff}s...")
                self.sleep(backoff)
                retry_count += 1

    def get_quote(self, symbol: str) -> Quote:
        """
        Busca única, sem retry e sem assinatura.

        Raises:
            TransportError: falha propagada ao chamador
        """
        try:
            payload = self.client.fetch_quote(symbol)
            return Quote.from_payload(symbol, payload, self.tz)
        except TransportError as e:
            logger.error(f"Erro ao buscar cotação de {symbol}: {e!r}")
            raise

    def search(self, query: str) -> List[SymbolMatch]:
        """
        Busca símbolos por texto. Nunca lança exceção.

        Em qualquer falha da busca (inclusive resposta vazia ou malformada),
        tenta a cotação direta usando a query como símbolo.

        Args:
            query: Texto da busca

        Returns:
            Lista (possivelmente vazia) com até search_limit resultados
        """
        if not query or not query.strip():
            return []

        try:
            return self._search_endpoint(query)
        except (TransportError, SearchFailure) as e:
            logger.warning(f"⚠ Busca falhou para '{query}': {e!r}. Tentando símbolo direto")
            return self._search_by_symbol(query)
        except Exception:
            logger.exception(f"✗ Erro inesperado na busca por '{query}'. Tentando símbolo direto")
            return self._search_by_symbol(query)

    def _search_endpoint(self, query: str) -> List[SymbolMatch]:
        """Consulta /search e normaliza o resultado"""
        data = self.client.search(query)

        if not isinstance(data, dict) or not isinstance(data.get('result'), list):
            raise SearchFailure(f"Malformed search response for '{query}'")

        matches = []
        for item in data['result']:
            if not isinstance(item, dict) or not item.get('symbol'):
                continue
            try:
                matches.append(SymbolMatch.from_search_item(item))
            except SchemaError as e:
                logger.debug(f"Item de busca ignorado: {e}")

        if not matches:
            raise SearchFailure(f"No matches for '{query}'")

        return matches[:self.search_limit]

    def _search_by_symbol(self, query: str) -> List[SymbolMatch]:
        """Fallback: trata a query como símbolo e tenta uma cotação"""
        symbol = query.strip().upper()
        if not symbol:
            return []

        try:
            payload = self.client.fetch_quote(symbol)
        except TransportError as e:
            logger.error(f"✗ Busca direta por símbolo falhou para {symbol}: {e!r}")
            return []
        except Exception:
            logger.exception(f"✗ Erro inesperado na busca direta por {symbol}")
            return []

        if isinstance(payload, dict):
            return [SymbolMatch(symbol=symbol, description=f"Stock {symbol}")]
        return []
