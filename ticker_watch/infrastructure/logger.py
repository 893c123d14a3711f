"""
Logger: Logging estruturado com structlog
Cada registro leva o nome da thread (despacho da fila, poller ou principal)
"""

import structlog
import logging
import sys
from typing import Optional

from ticker_watch.config import settings


LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

# Bibliotecas HTTP que logam cada conexão em DEBUG
NOISY_LOGGERS = ('urllib3', 'requests')


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """
    Configura logging estruturado.

    Args:
        level: Nível mínimo (default: settings.LOG_LEVEL)
        log_format: 'json' ou qualquer outro valor para saída de console

    Raises:
        ValueError: nível desconhecido
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT

    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, getattr(logging, level)))

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.THREAD_NAME]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values):
    """
    Retorna logger estruturado.

    Args:
        name: Nome do logger (normalmente __name__)
        **initial_values: Contexto fixo de todos os eventos (ex.: component="poller")
    """
    return structlog.get_logger(name, **initial_values)
