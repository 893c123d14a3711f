"""
Modelo de Domínio: Erros
Taxonomia de falhas do motor de cotações
"""

from typing import Optional


class TickerWatchError(Exception):
    """Raiz de todas as falhas do pacote"""


class TransportError(TickerWatchError):
    """
    Falha de transporte (HTTP ou rede).

    `status` é o código HTTP quando houve resposta; None para falhas
    de rede (timeout, conexão recusada, DNS).
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    @property
    def is_client_error(self) -> bool:
        """4xx, incluindo 429"""
        return self.status is not None and 400 <= self.status < 500

    @classmethod
    def from_status(cls, status: int, message: str = "") -> 'TransportError':
        """Constrói a subclasse adequada ao código HTTP"""
        message = message or f"HTTP {status}"
        if status == 429:
            return RateLimitedError(message, status)
        if status >= 500:
            return ServerError(message, status)
        if 400 <= status < 500:
            return ClientError(message, status)
        return cls(message, status)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={str(self)!r})"


class ClientError(TransportError):
    """4xx diferente de 429 - nunca retentado"""


class RateLimitedError(TransportError):
    """429 Too Many Requests"""


class ServerError(TransportError):
    """5xx"""


class ValidationError(TransportError):
    """Payload de cotação sem preço numérico válido"""

    def __init__(self, message: str):
        super().__init__(message, status=None)


class CapacityExceeded(TickerWatchError):
    """Limite de símbolos observados simultaneamente atingido"""

    def __init__(self, limit: int):
        super().__init__(f"Maximum number of watched symbols ({limit}) reached")
        self.limit = limit


class SearchFailure(TickerWatchError):
    """Busca indisponível ou resposta malformada (sempre recuperada localmente)"""
