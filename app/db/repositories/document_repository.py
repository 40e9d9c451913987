from datetime import datetime
from typing import Optional, List, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_, or_, case, false
from sqlalchemy.exc import IntegrityError
import uuid

from app.db.models.document import (
    Document as DocumentModel,
    DocumentContent as DocumentContentModel,
    DocumentMeta as DocumentMetaModel,
    Annotation as AnnotationModel,
)
from app.db.models.sponsor import Sponsor as SponsorModel
from app.domains.documents.entities import Document, DocumentContent
from app.domains.documents.exceptions import SlugTakenError
from app.domains.documents.listing import StandardSort, PageWindow
from app.domains.documents.publish_states import PublishState
from app.domains.documents.visibility import DocumentCriteria, VisibilityPredicate


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DocumentRepository:
    """Репозиторий для работы с документами"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: Document, first_page: DocumentContent) -> Document:
        """Создание документа вместе с первой страницей.

        Уникальность slug окончательно проверяет база: при конфликте
        выбрасывается SlugTakenError, чтобы сервис попробовал другой slug.
        """
        sponsors = await self._load_sponsors(document.sponsor_ids)
        db_document = DocumentModel(
            uuid=document.uuid,
            title=document.title,
            slug=document.slug,
            publish_state=document.publish_state.value,
            discussion_state=document.discussion_state.value,
            is_template=document.is_template,
            sponsors=sponsors
        )
        db_document.contents.append(
            DocumentContentModel(
                uuid=first_page.uuid,
                page=first_page.page,
                content=first_page.content
            )
        )

        self.session.add(db_document)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            if await self.slug_exists(document.slug):
                raise SlugTakenError(document.slug)
            raise
        return self._to_domain(db_document)

    async def get_by_uuid(
        self,
        document_uuid: uuid.UUID,
        include_trashed: bool = False,
        lock: bool = False
    ) -> Optional[Document]:
        """Получение документа по UUID; lock блокирует строку до конца транзакции"""
        stmt = select(DocumentModel).where(DocumentModel.uuid == document_uuid)
        if not include_trashed:
            stmt = stmt.where(DocumentModel.deleted_at.is_(None))
        if lock:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def get_by_slug(self, slug: str, include_trashed: bool = False) -> Optional[Document]:
        """Получение документа по slug"""
        stmt = select(DocumentModel).where(DocumentModel.slug == slug)
        if not include_trashed:
            stmt = stmt.where(DocumentModel.deleted_at.is_(None))
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def slug_exists(self, slug: str) -> bool:
        """Занят ли slug, в том числе мягко удаленным документом"""
        result = await self.session.execute(
            select(func.count(DocumentModel.uuid)).where(DocumentModel.slug == slug)
        )
        return result.scalar() > 0

    async def update(self, document: Document) -> Document:
        """Обновление полей документа"""
        await self.session.execute(
            update(DocumentModel)
            .where(DocumentModel.uuid == document.uuid)
            .values(
                title=document.title,
                publish_state=document.publish_state.value,
                discussion_state=document.discussion_state.value,
                updated_at=datetime.utcnow()
            )
        )
        return await self.get_by_uuid(document.uuid, include_trashed=True)

    async def soft_delete(self, document_uuid: uuid.UUID, publish_state: PublishState) -> None:
        """Мягкое удаление документа с каскадом.

        Аннотации удаляются все, включая скрытые; затем метаданные, страницы
        и сам документ. Коммит выполняет вызывающая сторона.
        """
        now = datetime.utcnow()
        await self.session.execute(
            update(DocumentModel)
            .where(DocumentModel.uuid == document_uuid)
            .values(publish_state=publish_state.value, updated_at=now)
        )
        for model in (AnnotationModel, DocumentMetaModel, DocumentContentModel):
            await self.session.execute(
                update(model)
                .where(and_(model.document_id == document_uuid, model.deleted_at.is_(None)))
                .values(deleted_at=now)
            )
        await self.session.execute(
            update(DocumentModel)
            .where(DocumentModel.uuid == document_uuid)
            .values(deleted_at=now)
        )

    async def restore(self, document_uuid: uuid.UUID, publish_state: PublishState) -> None:
        """Восстановление документа и всех зависимых записей"""
        for model in (DocumentMetaModel, DocumentContentModel, AnnotationModel):
            await self.session.execute(
                update(model)
                .where(and_(model.document_id == document_uuid, model.deleted_at.is_not(None)))
                .values(deleted_at=None)
            )
        await self.session.execute(
            update(DocumentModel)
            .where(DocumentModel.uuid == document_uuid)
            .values(deleted_at=None, publish_state=publish_state.value, updated_at=datetime.utcnow())
        )

    # Страницы содержимого

    async def get_content(self, document_uuid: uuid.UUID, page: int) -> Optional[DocumentContent]:
        """Страница документа по номеру"""
        result = await self.session.execute(
            select(DocumentContentModel).where(
                and_(
                    DocumentContentModel.document_id == document_uuid,
                    DocumentContentModel.page == page,
                    DocumentContentModel.deleted_at.is_(None)
                )
            )
        )
        db_content = result.scalar_one_or_none()
        return self._content_to_domain(db_content) if db_content else None

    async def count_contents(self, document_uuid: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(DocumentContentModel.uuid)).where(
                and_(
                    DocumentContentModel.document_id == document_uuid,
                    DocumentContentModel.deleted_at.is_(None)
                )
            )
        )
        return result.scalar()

    async def max_page(self, document_uuid: uuid.UUID) -> int:
        """Наибольший номер страницы, с учетом удаленных, чтобы номера не повторялись"""
        result = await self.session.execute(
            select(func.max(DocumentContentModel.page))
            .where(DocumentContentModel.document_id == document_uuid)
        )
        return result.scalar() or 0

    async def add_content(self, content: DocumentContent) -> DocumentContent:
        db_content = DocumentContentModel(
            uuid=content.uuid,
            document_id=content.document_id,
            page=content.page,
            content=content.content
        )
        self.session.add(db_content)
        await self.session.flush()
        return self._content_to_domain(db_content)

    async def update_content(self, content_uuid: uuid.UUID, text: str) -> None:
        await self.session.execute(
            update(DocumentContentModel)
            .where(DocumentContentModel.uuid == content_uuid)
            .values(content=text, updated_at=datetime.utcnow())
        )

    # Выборки для списка документов

    async def count_matching(self, criteria: DocumentCriteria) -> int:
        """Количество документов по критериям; сортировка в подсчете не участвует"""
        filtered = self._filtered(select(DocumentModel.uuid), criteria)
        result = await self.session.execute(
            select(func.count()).select_from(filtered.subquery())
        )
        return result.scalar()

    async def find_page(
        self,
        criteria: DocumentCriteria,
        sort: StandardSort,
        window: PageWindow
    ) -> List[Document]:
        """Страница документов с сортировкой средствами базы"""
        stmt = self._filtered(select(DocumentModel), criteria)
        stmt = stmt.order_by(*self._ordering(sort, criteria.search))
        result = await self.session.execute(
            stmt.offset(window.offset).limit(window.per_page)
        )
        return [self._to_domain(doc) for doc in result.scalars().all()]

    async def find_all(self, criteria: DocumentCriteria) -> List[Document]:
        """Все документы по критериям, без окна и сортировки"""
        result = await self.session.execute(self._filtered(select(DocumentModel), criteria))
        return [self._to_domain(doc) for doc in result.scalars().all()]

    def _filtered(self, stmt, criteria: DocumentCriteria):
        stmt = stmt.where(DocumentModel.is_template.is_(False))
        stmt = stmt.where(self._visibility_clause(criteria.visibility))

        if not criteria.visibility.include_trashed:
            stmt = stmt.where(DocumentModel.deleted_at.is_(None))

        if criteria.discussion_states:
            stmt = stmt.where(
                DocumentModel.discussion_state.in_([state.value for state in criteria.discussion_states])
            )

        if criteria.search:
            stmt = stmt.where(or_(self._title_match(criteria.search), self._content_match(criteria.search)))

        if criteria.document_ids is not None:
            stmt = stmt.where(DocumentModel.uuid.in_(criteria.document_ids))

        return stmt

    def _visibility_clause(self, predicate: VisibilityPredicate):
        if predicate.matches_nothing:
            return false()
        return or_(*[
            and_(
                DocumentModel.sponsors.any(SponsorModel.uuid == scope.sponsor_id),
                DocumentModel.publish_state.in_(sorted(state.value for state in scope.states))
            )
            for scope in predicate.scopes
        ])

    def _title_match(self, term: str):
        return DocumentModel.title.ilike(_like_pattern(term), escape="\\")

    def _content_match(self, term: str):
        return DocumentModel.contents.any(
            and_(
                DocumentContentModel.content.ilike(_like_pattern(term), escape="\\"),
                DocumentContentModel.deleted_at.is_(None)
            )
        )

    def _ordering(self, sort: StandardSort, search: Optional[str]) -> list:
        if sort.by_relevance and search:
            relevance = (
                case((self._title_match(search), 2), else_=0)
                + case((self._content_match(search), 1), else_=0)
            )
            return [relevance.desc(), DocumentModel.updated_at.desc()]

        column = getattr(DocumentModel, sort.field, DocumentModel.updated_at)
        primary = column.asc() if sort.direction == "asc" else column.desc()
        return [primary, DocumentModel.uuid]

    async def _load_sponsors(self, sponsor_ids: Iterable[uuid.UUID]) -> List[SponsorModel]:
        sponsor_ids = list(sponsor_ids)
        if not sponsor_ids:
            return []
        result = await self.session.execute(
            select(SponsorModel).where(SponsorModel.uuid.in_(sponsor_ids))
        )
        return list(result.scalars().all())

    def _to_domain(self, db_document: DocumentModel) -> Document:
        """Преобразование модели БД в доменную сущность"""
        return Document(
            uuid=db_document.uuid,
            title=db_document.title,
            slug=db_document.slug,
            publish_state=db_document.publish_state,
            discussion_state=db_document.discussion_state,
            is_template=db_document.is_template,
            sponsor_ids=[sponsor.uuid for sponsor in db_document.sponsors],
            created_at=db_document.created_at,
            updated_at=db_document.updated_at,
            deleted_at=db_document.deleted_at
        )

    def _content_to_domain(self, db_content: DocumentContentModel) -> DocumentContent:
        return DocumentContent(
            uuid=db_content.uuid,
            document_id=db_content.document_id,
            page=db_content.page,
            content=db_content.content,
            created_at=db_content.created_at,
            updated_at=db_content.updated_at
        )
