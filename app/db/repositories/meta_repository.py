from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, and_
import uuid

from app.db.models.document import DocumentMeta as DocumentMetaModel
from app.domains.documents.support import (
    SUPPORT_META_KEY, SupportCounts, decode_vote, encode_vote,
)


class DocumentMetaRepository:
    """Метаданные документа: голоса пользователей и служебные значения"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get_user_support(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        lock: bool = False
    ) -> Optional[bool]:
        """Голос пользователя или None, если голоса нет.

        lock=True берет блокировку строки до конца транзакции.
        """
        stmt = select(DocumentMetaModel.meta_value).where(
            and_(
                DocumentMetaModel.document_id == document_id,
                DocumentMetaModel.user_id == user_id,
                DocumentMetaModel.meta_key == SUPPORT_META_KEY,
                DocumentMetaModel.deleted_at.is_(None)
            )
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        row = result.first()
        return decode_vote(row.meta_value) if row else None
    
    async def create_support(self, document_id: uuid.UUID, user_id: uuid.UUID, value: bool) -> None:
        self.session.add(
            DocumentMetaModel(
                document_id=document_id,
                user_id=user_id,
                meta_key=SUPPORT_META_KEY,
                meta_value=encode_vote(value)
            )
        )
        await self.session.flush()
    
    async def set_support(self, document_id: uuid.UUID, user_id: uuid.UUID, value: bool) -> None:
        await self.session.execute(
            update(DocumentMetaModel)
            .where(
                and_(
                    DocumentMetaModel.document_id == document_id,
                    DocumentMetaModel.user_id == user_id,
                    DocumentMetaModel.meta_key == SUPPORT_META_KEY
                )
            )
            .values(meta_value=encode_vote(value))
        )
    
    async def delete_support(self, document_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Снятие голоса: строка удаляется физически"""
        await self.session.execute(
            delete(DocumentMetaModel).where(
                and_(
                    DocumentMetaModel.document_id == document_id,
                    DocumentMetaModel.user_id == user_id,
                    DocumentMetaModel.meta_key == SUPPORT_META_KEY
                )
            )
        )
    
    async def support_counts(self, document_id: uuid.UUID) -> SupportCounts:
        """Подсчет голосов за и против в момент чтения"""
        result = await self.session.execute(
            select(DocumentMetaModel.meta_value, func.count(DocumentMetaModel.uuid))
            .where(
                and_(
                    DocumentMetaModel.document_id == document_id,
                    DocumentMetaModel.meta_key == SUPPORT_META_KEY,
                    DocumentMetaModel.deleted_at.is_(None)
                )
            )
            .group_by(DocumentMetaModel.meta_value)
        )
        support = oppose = 0
        for value, count in result.all():
            if decode_vote(value):
                support += count
            else:
                oppose += count
        return SupportCounts(support=support, oppose=oppose)
    
    async def get_value(self, document_id: uuid.UUID, key: str) -> Optional[str]:
        """Значение метаданных уровня документа (без пользователя)"""
        result = await self.session.execute(
            select(DocumentMetaModel.meta_value).where(
                and_(
                    DocumentMetaModel.document_id == document_id,
                    DocumentMetaModel.user_id.is_(None),
                    DocumentMetaModel.meta_key == key,
                    DocumentMetaModel.deleted_at.is_(None)
                )
            )
        )
        return result.scalars().first()
    
    async def set_value(self, document_id: uuid.UUID, key: str, value: Optional[str]) -> None:
        result = await self.session.execute(
            update(DocumentMetaModel)
            .where(
                and_(
                    DocumentMetaModel.document_id == document_id,
                    DocumentMetaModel.user_id.is_(None),
                    DocumentMetaModel.meta_key == key
                )
            )
            .values(meta_value=value)
        )
        if result.rowcount == 0:
            self.session.add(
                DocumentMetaModel(document_id=document_id, meta_key=key, meta_value=value)
            )
            await self.session.flush()
