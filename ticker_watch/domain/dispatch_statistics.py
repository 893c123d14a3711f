"""
Modelo de Domínio: Estatísticas de despacho
Contadores da fila e registro de falhas terminais (dead letters)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any


@dataclass
class DeadLetter:
    """Entrada descartada por falha terminal"""

    entry_id: str
    label: str
    reason: str
    retry_count: int
    status: Optional[int] = None
    failed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário"""
        return {
            'entry_id': self.entry_id,
            'label': self.label,
            'reason': self.reason,
            'retry_count': self.retry_count,
            'status': self.status,
            'failed_at': self.failed_at.isoformat(),
        }


@dataclass
class DispatchStatistics:
    """Estatísticas agregadas da fila"""

    enqueued: int = 0
    dispatched: int = 0
    succeeded: int = 0
    retried: int = 0
    dead_lettered: int = 0
    last_dispatch_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Fração de despachos bem-sucedidos"""
        if self.dispatched == 0:
            return 0.0
        return self.succeeded / self.dispatched

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário"""
        return {
            'enqueued': self.enqueued,
            'dispatched': self.dispatched,
            'succeeded': self.succeeded,
            'retried': self.retried,
            'dead_lettered': self.dead_lettered,
            'success_rate': self.success_rate,
            'last_dispatch_at': self.last_dispatch_at.isoformat() if self.last_dispatch_at else None,
        }
