from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Union
import logging
import uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentPublished:
    document_id: uuid.UUID
    user_id: uuid.UUID
    occurred_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class SupportVoteChanged:
    old_value: Optional[bool]
    new_value: Optional[bool]
    document_id: uuid.UUID
    user_id: uuid.UUID
    occurred_at: datetime = field(default_factory=datetime.utcnow)


DocumentEvent = Union[DocumentPublished, SupportVoteChanged]


class EventSink(Protocol):
    """Получатель доменных событий (уведомления, аналитика)"""

    async def emit(self, event: DocumentEvent) -> None:
        ...


class LoggingEventSink:
    """Приемник по умолчанию: пишет события в лог"""

    async def emit(self, event: DocumentEvent) -> None:
        logger.info(f"Event {type(event).__name__}: {event}")
