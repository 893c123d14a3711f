"""
config.py - Configurações com Pydantic

Carrega variáveis de .env e do ambiente do processo
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
import pytz


class Settings(BaseSettings):
    """
    Configurações da aplicação.

    Carrega variáveis de:
    1. .env (arquivo local)
    2. Variáveis de ambiente do SO/Docker
    """

    # ═══════════════════════════════════════════════════════════
    # ENDPOINT DE COTAÇÕES
    # ═══════════════════════════════════════════════════════════

    API_BASE_URL: str = "http://localhost:8086/api"
    """URL base do proxy de cotações"""

    FINNHUB_API_KEY: Optional[str] = None
    """Token do provedor (None = proxy injeta a chave)"""

    REQUEST_TIMEOUT_SECONDS: float = 10.0
    """Timeout de cada requisição HTTP"""

    # ═══════════════════════════════════════════════════════════
    # FILA DE REQUISIÇÕES
    # ═══════════════════════════════════════════════════════════

    MAX_REQUESTS_PER_SECOND: int = 20
    """Vazão máxima de requisições saindo da fila"""

    MIN_DISPATCH_INTERVAL_MS: int = 100
    """Piso do intervalo entre despachos, mesmo com vazão maior"""

    QUEUE_MAX_RETRIES: int = 3
    """Máximo de reenfileiramentos de uma entrada"""

    BASE_RETRY_DELAY_MS: int = 1000
    """Delay base do backoff exponencial da fila"""

    MAX_BACKOFF_DELAY_MS: int = 30000
    """Teto do backoff da fila (sem contar o jitter)"""

    RETRY_JITTER_MS: int = 1000
    """Jitter máximo somado ao backoff da fila"""

    DEAD_LETTER_HISTORY: int = 100
    """Quantidade de falhas terminais mantidas em memória"""

    # ═══════════════════════════════════════════════════════════
    # FETCH E ASSINATURAS
    # ═══════════════════════════════════════════════════════════

    FETCH_RETRY_COUNT: int = 3
    """Tentativas diretas dentro de um único fetch"""

    FETCH_BACKOFF_BASE: int = 2
    """Base para backoff do fetch (base^tentativa segundos)"""

    MAX_CONCURRENT_SYMBOLS: int = 25
    """Máximo de símbolos observados ao mesmo tempo"""

    SEARCH_RESULT_LIMIT: int = 8
    """Máximo de resultados devolvidos pela busca"""

    REFRESH_INTERVAL_SECONDS: float = 15.0
    """Intervalo entre ciclos de re-fetch dos símbolos observados"""

    WATCHED_TICKERS: str = "AAPL,MSFT,GOOGL"
    """Lista de tickers observados pelo entry point (separados por vírgula)"""

    TIMEZONE: str = "America/New_York"
    """Fuso horário para timestamps das cotações"""

    # ═══════════════════════════════════════════════════════════
    # LOGGING
    # ═══════════════════════════════════════════════════════════

    LOG_LEVEL: str = "INFO"
    """Nível de log: DEBUG, INFO, WARNING, ERROR"""

    LOG_FORMAT: str = "json"
    """Formato: json ou texto"""

    # ═══════════════════════════════════════════════════════════
    # PYDANTIC CONFIG
    # ═══════════════════════════════════════════════════════════

    model_config = ConfigDict(
        extra='allow',
        env_file='.env',
        case_sensitive=True
    )

    # ═══════════════════════════════════════════════════════════
    # PROPRIEDADES CALCULADAS
    # ═══════════════════════════════════════════════════════════

    @property
    def tz(self):
        """Retorna timezone object"""
        return pytz.timezone(self.TIMEZONE)

    @property
    def tickers_list(self) -> list:
        """Retorna lista de tickers"""
        return [t.strip().upper() for t in self.WATCHED_TICKERS.split(',') if t.strip()]

    def __repr__(self):
        return (
            f"Settings("
            f"api={self.API_BASE_URL}, "
            f"rps={self.MAX_REQUESTS_PER_SECOND}, "
            f"tickers={len(self.tickers_list)}"
            f")"
        )


# ═══════════════════════════════════════════════════════════
# INSTÂNCIA GLOBAL
# ═══════════════════════════════════════════════════════════

try:
    settings = Settings()
except Exception as e:
    print(f"❌ Erro ao carregar Settings: {e}")
    raise
