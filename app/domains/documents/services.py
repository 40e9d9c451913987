from dataclasses import dataclass
from typing import Optional, List, Protocol
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from app.core.config import settings
from app.core.db import transaction
from app.db.repositories.annotation_repository import AnnotationActivityRanker
from app.db.repositories.document_repository import DocumentRepository
from app.db.repositories.meta_repository import DocumentMetaRepository
from app.db.repositories.sponsor_repository import SponsorRepository
from app.domains.documents.entities import Document, DocumentContent
from app.domains.documents.events import (
    DocumentPublished, EventSink, LoggingEventSink, SupportVoteChanged,
)
from app.domains.documents.exceptions import (
    DocumentNotFoundError, DocumentPermissionError, PageNotFoundError,
    SlugTakenError, SponsorNotFoundError, TitleInvalidError,
)
from app.domains.documents.lifecycle import (
    crosses_into_published, delete_transition, restore_transition, update_transition,
)
from app.domains.documents.listing import (
    ActivityRanker, ActivitySort, DocumentListPage, PageWindow, StandardSort,
    MAX_SQL_INTEGER, choose_strategy, normalize_search, parse_positive_int, rank_by_position,
)
from app.domains.documents.publish_states import (
    resolve_discussion_states, resolve_requested_states,
    valid_discussion_states, valid_publish_states_for_query,
)
from app.domains.documents.schemas import DocumentCreate, DocumentListQuery, DocumentUpdate
from app.domains.documents.slugs import SuffixFactory, random_suffix, slug_candidates, slugify
from app.domains.documents.support import (
    INTRO_TEXT_META_KEY, SupportCounts, VoteAction, VoteTransition, toggle_support,
)
from app.domains.documents.visibility import DocumentCriteria, build_visibility_predicate
from app.domains.identity.entities import User
from app.domains.sponsors.entities import Sponsor
from app.domains.sponsors.services import SponsorMembershipResolver

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Канал пользовательских предупреждений"""

    def warning(self, message: str) -> None:
        ...


@dataclass(frozen=True)
class DeleteOutcome:
    document: Document
    restore_path: str


@dataclass(frozen=True)
class DocumentDetail:
    document: Document
    page: int
    total_pages: int
    content: Optional[DocumentContent]
    intro_text: Optional[str]
    support_counts: SupportCounts
    user_support: Optional[bool]


@dataclass(frozen=True)
class ListingOptions:
    sponsors: List[Sponsor]
    publish_states: List[str]
    discussion_states: List[str]


def _ensure_can_manage(document: Document, user: User) -> None:
    if not document.can_be_managed_by(user):
        raise DocumentPermissionError("You don't have permission to manage this document")


class DocumentService:
    """Сервис жизненного цикла документа"""

    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventSink] = None,
        suffix_factory: SuffixFactory = random_suffix
    ):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.meta_repository = DocumentMetaRepository(session)
        self.sponsor_repository = SponsorRepository(session)
        self.events = events or LoggingEventSink()
        self.suffix_factory = suffix_factory

    async def create_document(self, document_data: DocumentCreate, user: User) -> Document:
        """Создание документа с первой страницей и спонсором.

        Занятый slug дополняется случайным суффиксом; если свободный вариант
        не найден за slug_max_attempts попыток, выбрасывается TitleInvalidError.
        """
        sponsor = await self.sponsor_repository.get_by_uuid(document_data.sponsor_id)
        if not sponsor:
            raise SponsorNotFoundError(f"Sponsor {document_data.sponsor_id} not found")
        if not (user.is_admin or user.is_member_of(sponsor.uuid)):
            raise DocumentPermissionError("You are not a member of this sponsor")

        base_slug = slugify(document_data.title)
        if not base_slug:
            raise TitleInvalidError(document_data.title)

        candidates = slug_candidates(
            base_slug,
            settings.slug_max_attempts,
            settings.slug_suffix_length,
            self.suffix_factory
        )
        for slug in candidates:
            if await self.document_repository.slug_exists(slug):
                logger.warning(f"Slug {slug} is taken, trying another")
                continue

            document = Document.create_document(document_data.title, slug, sponsor.uuid)
            first_page = DocumentContent.create_page(document.uuid, 1, DocumentContent.PLACEHOLDER)
            try:
                async with transaction(self.session):
                    created = await self.document_repository.create(document, first_page)
            except SlugTakenError:
                # кто-то занял slug между проверкой и вставкой
                logger.warning(f"Slug {slug} was taken concurrently, retrying")
                continue

            logger.info(f"Document {created.uuid} created with slug {created.slug} by user {user.uuid}")
            return created

        logger.warning(f"No free slug for title {document_data.title!r}")
        raise TitleInvalidError(document_data.title)

    async def get_document(self, document_uuid: uuid.UUID) -> Optional[Document]:
        """Получение живого документа по UUID"""
        return await self.document_repository.get_by_uuid(document_uuid)

    async def get_document_detail(
        self,
        slug_or_uuid: str,
        user: Optional[User],
        page=1
    ) -> DocumentDetail:
        """Документ со страницей содержимого, вступлением и голосами"""
        document = await self._find_for_display(slug_or_uuid)
        if not document or not document.is_visible_to(user):
            raise DocumentNotFoundError("Document not found")

        page = parse_positive_int(page, 1, MAX_SQL_INTEGER)
        total_pages = await self.document_repository.count_contents(document.uuid)
        content = await self.document_repository.get_content(document.uuid, page)
        if content is None and page > 1:
            raise PageNotFoundError(f"Page {page} not found")

        user_support = None
        if user is not None:
            user_support = await self.meta_repository.get_user_support(document.uuid, user.uuid)

        return DocumentDetail(
            document=document,
            page=page,
            total_pages=total_pages,
            content=content,
            intro_text=await self.meta_repository.get_value(document.uuid, INTRO_TEXT_META_KEY),
            support_counts=await self.meta_repository.support_counts(document.uuid),
            user_support=user_support
        )

    async def update_document(
        self,
        document_uuid: uuid.UUID,
        update_data: DocumentUpdate,
        user: User
    ) -> Document:
        """Обновление документа; событие публикации только при переходе в published"""
        async with transaction(self.session):
            document = await self.document_repository.get_by_uuid(document_uuid, lock=True)
            if not document:
                raise DocumentNotFoundError("Document not found")
            _ensure_can_manage(document, user)

            old_state = document.publish_state
            document.publish_state = update_transition(old_state, update_data.publish_state).unwrap()
            if update_data.title is not None:
                document.title = update_data.title
            if update_data.discussion_state is not None:
                document.discussion_state = update_data.discussion_state

            updated = await self.document_repository.update(document)

            if update_data.intro_text is not None:
                await self.meta_repository.set_value(document_uuid, INTRO_TEXT_META_KEY, update_data.intro_text)

            if update_data.page_content is not None:
                content = await self.document_repository.get_content(document_uuid, update_data.page)
                # несуществующая страница пропускается
                if content:
                    await self.document_repository.update_content(content.uuid, update_data.page_content)

        logger.info(f"Document {document_uuid} updated by user {user.uuid}")

        if crosses_into_published(old_state, updated.publish_state):
            logger.info(f"Document {document_uuid} published by user {user.uuid}")
            await self.events.emit(DocumentPublished(document_id=document_uuid, user_id=user.uuid))

        return updated

    async def delete_document(self, document_uuid: uuid.UUID, user: User) -> DeleteOutcome:
        """Мягкое удаление с каскадом на аннотации, метаданные и страницы"""
        async with transaction(self.session):
            document = await self.document_repository.get_by_uuid(document_uuid, lock=True)
            if not document:
                raise DocumentNotFoundError("Document not found")
            _ensure_can_manage(document, user)

            target = delete_transition(document, user).unwrap()
            await self.document_repository.soft_delete(document_uuid, target)

        logger.info(f"Document {document_uuid} deleted ({target.value}) by user {user.uuid}")
        deleted = await self.document_repository.get_by_uuid(document_uuid, include_trashed=True)
        return DeleteOutcome(document=deleted, restore_path=f"/documents/{document_uuid}/restore")

    async def restore_document(self, document_uuid: uuid.UUID, user: User) -> Document:
        """Восстановление удаленного документа в состояние unpublished"""
        async with transaction(self.session):
            document = await self.document_repository.get_by_uuid(
                document_uuid, include_trashed=True, lock=True
            )
            if not document:
                raise DocumentNotFoundError("Document not found")
            _ensure_can_manage(document, user)

            target = restore_transition(document, user).unwrap()
            await self.document_repository.restore(document_uuid, target)

        logger.info(f"Document {document_uuid} restored by user {user.uuid}")
        return await self.document_repository.get_by_uuid(document_uuid)

    async def add_page(self, document_uuid: uuid.UUID, content: str, user: User) -> DocumentContent:
        """Новая страница с номером max(page) + 1"""
        async with transaction(self.session):
            document = await self.document_repository.get_by_uuid(document_uuid, lock=True)
            if not document:
                raise DocumentNotFoundError("Document not found")
            _ensure_can_manage(document, user)

            page = await self.document_repository.max_page(document_uuid) + 1
            created = await self.document_repository.add_content(
                DocumentContent.create_page(document_uuid, page, content)
            )

        logger.info(f"Page {created.page} added to document {document_uuid}")
        return created

    async def _find_for_display(self, slug_or_uuid: str) -> Optional[Document]:
        try:
            document_uuid = uuid.UUID(str(slug_or_uuid))
        except ValueError:
            return await self.document_repository.get_by_slug(slug_or_uuid, include_trashed=True)
        return await self.document_repository.get_by_uuid(document_uuid, include_trashed=True)


class SupportService:
    """Голоса поддержки документа"""

    # повтор после конфликта уникальности при одновременном первом голосе
    MAX_ATTEMPTS = 2

    def __init__(self, session: AsyncSession, events: Optional[EventSink] = None):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.meta_repository = DocumentMetaRepository(session)
        self.events = events or LoggingEventSink()

    async def update_support(self, document_uuid: uuid.UUID, user: User, support: bool) -> VoteTransition:
        """Голос за/против; повтор того же голоса снимает его"""
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                transition = await self._apply_vote(document_uuid, user, support)
            except IntegrityError:
                if attempt == self.MAX_ATTEMPTS:
                    raise
                logger.warning(f"Concurrent vote on document {document_uuid} by user {user.uuid}, retrying")
                continue
            break

        logger.info(
            f"Support vote on document {document_uuid} by user {user.uuid}: "
            f"{transition.previous} -> {transition.new}"
        )
        await self.events.emit(
            SupportVoteChanged(
                old_value=transition.previous,
                new_value=transition.new,
                document_id=document_uuid,
                user_id=user.uuid
            )
        )
        return transition

    async def get_support_counts(self, document_uuid: uuid.UUID) -> SupportCounts:
        return await self.meta_repository.support_counts(document_uuid)

    async def _apply_vote(self, document_uuid: uuid.UUID, user: User, support: bool) -> VoteTransition:
        async with transaction(self.session):
            document = await self.document_repository.get_by_uuid(document_uuid)
            if not document or not document.is_visible_to(user):
                raise DocumentNotFoundError("Document not found")

            existing = await self.meta_repository.get_user_support(document_uuid, user.uuid, lock=True)
            transition = toggle_support(existing, support)

            if transition.action == VoteAction.CREATE:
                await self.meta_repository.create_support(document_uuid, user.uuid, support)
            elif transition.action == VoteAction.UPDATE:
                await self.meta_repository.set_support(document_uuid, user.uuid, support)
            else:
                await self.meta_repository.delete_support(document_uuid, user.uuid)

        return transition


class ListingService:
    """Список документов с учетом прав доступа, поиска и сортировки"""

    def __init__(
        self,
        session: AsyncSession,
        ranker: Optional[ActivityRanker] = None,
        notifier: Optional[Notifier] = None
    ):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.sponsor_repository = SponsorRepository(session)
        self.membership = SponsorMembershipResolver(self.sponsor_repository)
        self.ranker = ranker or AnnotationActivityRanker(session, settings.activity_window_days)
        self.notifier = notifier

    async def list_documents(self, query: DocumentListQuery, user: Optional[User]) -> DocumentListPage:
        window = PageWindow.from_raw(
            query.page,
            query.limit,
            settings.listing_page_size,
            settings.listing_max_page_size
        )
        search = normalize_search(query.q)
        criteria = await self.build_criteria(query, user, search)
        strategy = choose_strategy(query.order, query.order_dir, search)

        if isinstance(strategy, ActivitySort):
            return await self._list_by_activity(criteria, window)
        return await self._list_standard(criteria, strategy, window)

    async def build_criteria(
        self,
        query: DocumentListQuery,
        user: Optional[User],
        search: Optional[str] = None
    ) -> DocumentCriteria:
        """Спецификация выборки: видимость по спонсорам, обсуждение, поиск"""
        sponsor_ids = query.sponsor_uuids()
        if sponsor_ids is None:
            sponsor_ids = await self.sponsor_repository.all_ids()

        member_ids = await self.membership.member_sponsor_ids(user)
        predicate = build_visibility_predicate(
            sponsor_ids,
            resolve_requested_states(query.publish_state),
            member_ids
        )
        return DocumentCriteria(
            visibility=predicate,
            discussion_states=resolve_discussion_states(query.discussion_state),
            search=search
        )

    async def query_options(self) -> ListingOptions:
        """Данные для построителя фильтров"""
        return ListingOptions(
            sponsors=await self.sponsor_repository.list_active(),
            publish_states=valid_publish_states_for_query(),
            discussion_states=valid_discussion_states()
        )

    async def _list_standard(
        self,
        criteria: DocumentCriteria,
        sort: StandardSort,
        window: PageWindow
    ) -> DocumentListPage:
        if sort.warning:
            logger.warning(sort.warning)
            if self.notifier is not None:
                self.notifier.warning(sort.warning)

        total = await self.document_repository.count_matching(criteria)
        documents = await self.document_repository.find_page(criteria, sort, window)
        return DocumentListPage(documents=documents, total=total, page=window.page, per_page=window.per_page)

    async def _list_by_activity(self, criteria: DocumentCriteria, window: PageWindow) -> DocumentListPage:
        # участвуют только документы, для которых есть рейтинг активности
        ranked_ids = await self.ranker.ranked_ids()
        if not ranked_ids:
            return DocumentListPage(documents=[], total=0, page=window.page, per_page=window.per_page)

        documents = await self.document_repository.find_all(criteria.restricted_to(ranked_ids))
        ordered = rank_by_position(documents, ranked_ids)
        return DocumentListPage(
            documents=window.apply(ordered),
            total=len(ranked_ids),
            page=window.page,
            per_page=window.per_page
        )
