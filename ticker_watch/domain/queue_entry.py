"""
Queue Entry: Unidade de trabalho da fila de requisições
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional
import uuid


@dataclass
class QueueEntry:
    """Entrada pendente na fila (a fila só olha prioridade e retry_count)"""

    action: Callable[[], None]  # Trabalho a executar (fetch, busca...)
    priority: bool = False  # True = entra na cabeça da fila
    retry_count: int = 0  # Número de retries já feitos
    label: str = "request"  # Nome legível para logs
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_error: Optional[BaseException] = field(default=None, repr=False)
    is_done: bool = False  # True após sucesso ou descarte

    def run(self):
        """Executa a ação"""
        self.action()

    def mark_done(self):
        """Marca a entrada como encerrada (sucesso ou falha terminal)"""
        self.is_done = True

    def mark_retry(self, error: BaseException):
        """Registra falha retentável e incrementa o contador"""
        self.last_error = error
        self.retry_count += 1

    def __repr__(self) -> str:
        return (
            f"QueueEntry(id={self.entry_id[:8]}, label={self.label}, "
            f"priority={self.priority}, retry={self.retry_count})"
        )
