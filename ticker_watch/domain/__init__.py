# ticker_watch/domain/__init__.py
"""Domain Models - Entidades do sistema"""

from .errors import (
    TickerWatchError,
    TransportError,
    ClientError,
    RateLimitedError,
    ServerError,
    ValidationError,
    CapacityExceeded,
    SearchFailure,
)
from .quote import Quote, SymbolMatch, WatchedSymbol
from .queue_entry import QueueEntry
from .retry_policy import RetryPolicy
from .dispatch_statistics import DispatchStatistics, DeadLetter

__all__ = [
    'TickerWatchError',
    'TransportError',
    'ClientError',
    'RateLimitedError',
    'ServerError',
    'ValidationError',
    'CapacityExceeded',
    'SearchFailure',
    'Quote',
    'SymbolMatch',
    'WatchedSymbol',
    'QueueEntry',
    'RetryPolicy',
    'DispatchStatistics',
    'DeadLetter',
]
