from datetime import datetime, timedelta
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
import uuid

from app.db.models.document import (
    Annotation as AnnotationModel,
    Document as DocumentModel,
)
from app.domains.documents.publish_states import DiscussionState, PublishState


class AnnotationRepository:
    """Аннотации (комментарии) к документам"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def create(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        is_hidden: bool = False
    ) -> uuid.UUID:
        db_annotation = AnnotationModel(
            document_id=document_id,
            user_id=user_id,
            content=content,
            is_hidden=is_hidden
        )
        self.session.add(db_annotation)
        await self.session.flush()
        return db_annotation.uuid
    
    async def count_for_document(self, document_id: uuid.UUID, include_hidden: bool = False) -> int:
        """Количество живых аннотаций; скрытые по умолчанию не учитываются"""
        stmt = select(func.count(AnnotationModel.uuid)).where(
            and_(
                AnnotationModel.document_id == document_id,
                AnnotationModel.deleted_at.is_(None)
            )
        )
        if not include_hidden:
            stmt = stmt.where(AnnotationModel.is_hidden.is_(False))
        result = await self.session.execute(stmt)
        return result.scalar()


class AnnotationActivityRanker:
    """Рейтинг активности по числу свежих аннотаций.

    Участвуют только живые опубликованные документы с открытым обсуждением;
    при равенстве выше документ, обновленный позже.
    """
    
    def __init__(self, session: AsyncSession, window_days: int = 30):
        self.session = session
        self.window_days = window_days
    
    async def ranked_ids(self) -> List[uuid.UUID]:
        since = datetime.utcnow() - timedelta(days=self.window_days)
        activity = func.count(AnnotationModel.uuid)
        result = await self.session.execute(
            select(DocumentModel.uuid)
            .outerjoin(
                AnnotationModel,
                and_(
                    AnnotationModel.document_id == DocumentModel.uuid,
                    AnnotationModel.deleted_at.is_(None),
                    AnnotationModel.is_hidden.is_(False),
                    AnnotationModel.created_at >= since
                )
            )
            .where(
                and_(
                    DocumentModel.publish_state == PublishState.PUBLISHED.value,
                    DocumentModel.discussion_state == DiscussionState.OPEN.value,
                    DocumentModel.is_template.is_(False),
                    DocumentModel.deleted_at.is_(None)
                )
            )
            .group_by(DocumentModel.uuid, DocumentModel.updated_at)
            .order_by(activity.desc(), DocumentModel.updated_at.desc())
        )
        return list(result.scalars().all())
