import uuid
from datetime import datetime
from typing import Optional, Iterable


class User:
    """Сущность пользователя домена Identity"""
    
    def __init__(
        self,
        uuid: uuid.UUID,
        email: str,
        username: str,
        is_active: bool = True,
        is_admin: bool = False,
        sponsor_ids: Iterable[uuid.UUID] = (),
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.email = email
        self.username = username
        self.is_active = is_active
        self.is_admin = is_admin
        self.sponsor_ids = frozenset(sponsor_ids)
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()
    
    def is_member_of(self, sponsor_id: uuid.UUID) -> bool:
        """Состоит ли пользователь в спонсоре"""
        return sponsor_id in self.sponsor_ids
    
    @classmethod
    def create_user(cls, email: str, username: str, is_admin: bool = False) -> "User":
        """Создание нового пользователя"""
        return cls(
            uuid=uuid.uuid4(),
            email=email,
            username=username,
            is_admin=is_admin
        )
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)
    
    def __repr__(self) -> str:
        return f"User(uuid={self.uuid}, username={self.username}, is_admin={self.is_admin})"
