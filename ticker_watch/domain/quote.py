"""
Modelos de Domínio: Cotações, resultados de busca e símbolos observados
"""

from pydantic import BaseModel, ConfigDict, Field
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Callable, Dict, Any
import math

from ticker_watch.domain.errors import ValidationError
from ticker_watch.domain.queue_entry import QueueEntry


PriceCallback = Callable[[float], None]


# ════════════════════════════════════════════════════════════════
# MODELOS PYDANTIC (Serialização/API)
# ════════════════════════════════════════════════════════════════

class Quote(BaseModel):
    """Cotação de um símbolo, no formato do endpoint /quote"""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    current_price: float = Field(alias='c')
    change: Optional[float] = Field(default=None, alias='d')
    percent_change: Optional[float] = Field(default=None, alias='dp')
    high: Optional[float] = Field(default=None, alias='h')
    low: Optional[float] = Field(default=None, alias='l')
    open: Optional[float] = Field(default=None, alias='o')
    previous_close: Optional[float] = Field(default=None, alias='pc')
    timestamp: Optional[datetime] = None

    @classmethod
    def from_payload(cls, symbol: str, payload: Any, tz=None) -> 'Quote':
        """
        Constrói a cotação a partir do JSON do endpoint.

        Args:
            symbol: Símbolo consultado
            payload: Corpo da resposta (dict com 'c', 'd', 'dp'...)
            tz: Timezone para localizar o campo 't' (epoch)

        Raises:
            ValidationError: se 'c' não for um número finito
        """
        if not isinstance(payload, dict):
            raise ValidationError(f"Invalid price data received for {symbol}")

        price = payload.get('c')
        if not is_valid_price(price):
            raise ValidationError(f"Invalid price data received for {symbol}")

        data = {k: v for k, v in payload.items() if k in ('d', 'dp', 'h', 'l', 'o', 'pc') and is_valid_price(v)}

        epoch = payload.get('t')
        timestamp = None
        if is_valid_price(epoch) and epoch > 0:
            try:
                timestamp = datetime.fromtimestamp(epoch, tz or timezone.utc)
            except (ValueError, OverflowError, OSError):
                # epoch fora do intervalo (ex.: em milissegundos)
                timestamp = None

        return cls(symbol=symbol, c=float(price), timestamp=timestamp, **data)


class SymbolMatch(BaseModel):
    """Resultado de busca de símbolos"""

    symbol: str
    description: str

    @classmethod
    def from_search_item(cls, item: Dict[str, Any]) -> 'SymbolMatch':
        """Normaliza um item do endpoint /search"""
        symbol = item['symbol']
        description = item.get('description') or item.get('type') or f"Stock {symbol}"
        return cls(symbol=symbol, description=description)


def is_valid_price(value: Any) -> bool:
    """Verifica se o valor é um número finito (bool não conta)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


# ════════════════════════════════════════════════════════════════
# ESTADO DO REGISTRO
# ════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class WatchedSymbol:
    """
    Assinatura ativa de um símbolo.

    A identidade do objeto distingue assinaturas sucessivas do mesmo
    símbolo: um fetch só notifica a assinatura que o originou.
    """

    symbol: str
    callback: PriceCallback
    last_price: Optional[float] = None
    pending_entry: Optional[QueueEntry] = field(default=None, repr=False)

    def __repr__(self) -> str:
        return f"WatchedSymbol(symbol={self.symbol}, last_price={self.last_price})"
