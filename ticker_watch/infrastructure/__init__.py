"""
ticker_watch/infrastructure/__init__.py
Expõe as principais classes e funções da infraestrutura
"""

from .queue_manager import ThrottledRetryQueue
from .quote_client import QuoteClient
from .logger import setup_logging, get_logger

__all__ = [
    'ThrottledRetryQueue',
    'QuoteClient',
    'setup_logging',
    'get_logger',
]
