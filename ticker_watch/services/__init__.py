# ticker_watch/services/__init__.py
"""Services - Lógica de negócio"""

from .quote_service import QuoteService
from .subscription_service import SubscriptionRegistry

__all__ = [
    'QuoteService',
    'SubscriptionRegistry',
]
