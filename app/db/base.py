import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, UUID

from app.core.db import Base


class BaseModel(Base):
    __abstract__ = True

    uuid = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SoftDeleteMixin:
    """Мягкое удаление: строка остается в таблице с отметкой deleted_at"""

    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None
