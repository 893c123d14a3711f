"""
Infrastructure: QuoteClient
Cliente HTTP para os endpoints de cotação e busca do proxy
"""

import requests
import logging
from requests.exceptions import RequestException
from typing import Any, Dict, Optional
from urllib.parse import quote as url_quote

from ticker_watch.config import settings
from ticker_watch.domain.errors import TransportError


logger = logging.getLogger(__name__)


class QuoteClient:
    """
    Cliente dos endpoints externos.
    Responsabilidades:
    - GET /stocks/quote/{symbol} -> {"c": preço, ...}
    - GET /stocks/search?q=...   -> {"result": [{symbol, description}]}
    - Traduzir falhas HTTP/rede em TransportError (com status quando houver)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else settings.FINNHUB_API_KEY
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.session = session if session is not None else requests.Session()

    def fetch_quote(self, symbol: str) -> Dict[str, Any]:
        """
        Busca a cotação de um símbolo.

        Args:
            symbol: Símbolo do ticker

        Returns:
            dict: JSON cru do endpoint

        Raises:
            TransportError: falha HTTP ou de rede
        """
        return self._get(f"/stocks/quote/{url_quote(symbol, safe='')}")

    def search(self, query: str) -> Any:
        """
        Busca símbolos por texto livre.

        Args:
            query: Texto da busca

        Returns:
            JSON cru do endpoint (o chamador valida o formato)

        Raises:
            TransportError: falha HTTP ou de rede
        """
        return self._get("/stocks/search", params={'q': query})

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET com tradução de erros"""
        params = dict(params or {})
        if self.api_key:
            params['token'] = self.api_key

        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except RequestException as e:
            logger.debug(f"✗ Falha de rede em {path}: {e}")
            raise TransportError(f"Network error on {path}: {e}") from e

        if response.status_code >= 400:
            logger.debug(f"✗ HTTP {response.status_code} em {path}")
            raise TransportError.from_status(
                response.status_code,
                f"HTTP {response.status_code} on {path}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON on {path}: {e}") from e

    def health_check(self) -> bool:
        """
        Verifica se o endpoint responde.

        Returns:
            bool: True se OK
        """
        try:
            self.search("AAPL")
            return True
        except TransportError as e:
            logger.error(f"✗ Endpoint de cotações indisponível: {e}")
            return False

    def close(self):
        """Fecha a sessão HTTP"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
