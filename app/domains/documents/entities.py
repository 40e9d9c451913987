import uuid
from datetime import datetime
from typing import Optional, Iterable

from app.domains.documents.publish_states import (
    PublishState, DiscussionState, is_deleted
)
from app.domains.identity.entities import User


class Document:
    """Сущность документа домена Documents"""

    def __init__(
        self,
        uuid: uuid.UUID,
        title: str,
        slug: str,
        publish_state: PublishState = PublishState.UNPUBLISHED,
        discussion_state: DiscussionState = DiscussionState.OPEN,
        is_template: bool = False,
        sponsor_ids: Iterable[uuid.UUID] = (),
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.title = title
        self.slug = slug
        self.publish_state = PublishState(publish_state)
        self.discussion_state = DiscussionState(discussion_state)
        self.is_template = is_template
        self.sponsor_ids = frozenset(sponsor_ids)
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()
        self.deleted_at = deleted_at

    def is_published(self) -> bool:
        return self.publish_state == PublishState.PUBLISHED

    def is_deleted(self) -> bool:
        """Документ в одном из удаленных состояний"""
        return is_deleted(self.publish_state)

    def is_trashed(self) -> bool:
        """Строка документа помечена как мягко удаленная"""
        return self.deleted_at is not None

    def can_be_managed_by(self, user: Optional[User]) -> bool:
        """Администратор или участник одного из спонсоров документа"""
        if user is None:
            return False
        if user.is_admin:
            return True
        return bool(self.sponsor_ids & user.sponsor_ids)

    def is_visible_to(self, user: Optional[User]) -> bool:
        """Опубликованный живой документ виден всем, остальные только управляющим"""
        if self.is_published() and not self.is_trashed():
            return True
        return self.can_be_managed_by(user)

    @classmethod
    def create_document(cls, title: str, slug: str, sponsor_id: uuid.UUID) -> "Document":
        """Создание нового документа"""
        return cls(
            uuid=uuid.uuid4(),
            title=title,
            slug=slug,
            publish_state=PublishState.UNPUBLISHED,
            discussion_state=DiscussionState.OPEN,
            sponsor_ids=[sponsor_id]
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Document(uuid={self.uuid}, slug={self.slug}, publish_state={self.publish_state.value})"


class DocumentContent:
    """Страница содержимого документа"""

    PLACEHOLDER = "New Document Content"

    def __init__(
        self,
        uuid: uuid.UUID,
        document_id: uuid.UUID,
        page: int,
        content: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.document_id = document_id
        self.page = page
        self.content = content
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    @classmethod
    def create_page(cls, document_id: uuid.UUID, page: int, content: str = "") -> "DocumentContent":
        return cls(
            uuid=uuid.uuid4(),
            document_id=document_id,
            page=page,
            content=content
        )

    def __repr__(self) -> str:
        return f"DocumentContent(document_id={self.document_id}, page={self.page})"
