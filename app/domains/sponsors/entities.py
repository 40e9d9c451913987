import uuid
from datetime import datetime
from typing import Optional

STATUS_ACTIVE = "active"


class Sponsor:
    """Организация, которой принадлежат документы"""

    def __init__(
        self,
        uuid: uuid.UUID,
        name: str,
        display_name: str,
        status: str = STATUS_ACTIVE,
        created_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.name = name
        self.display_name = display_name
        self.status = status
        self.created_at = created_at or datetime.utcnow()

    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def __eq__(self, other) -> bool:
        if not isinstance(other, Sponsor):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"Sponsor(uuid={self.uuid}, name={self.name}, status={self.status})"
