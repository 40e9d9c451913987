from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
import uuid

from app.core.auth import get_current_user, get_optional_user
from app.core.config import settings
from app.core.db import get_db
from app.core.messages import (
    DOCUMENT_CREATED, DOCUMENT_DELETED, DOCUMENT_PAGE_ADDED, DOCUMENT_RESTORED,
    DOCUMENT_SUPPORT_UPDATED, DOCUMENT_TITLE_INVALID, DOCUMENT_UPDATED,
    FlashMessages, get_flash_messages,
)
from app.db.repositories.annotation_repository import AnnotationActivityRanker
from app.domains.documents.entities import Document
from app.domains.documents.events import EventSink, LoggingEventSink
from app.domains.documents.exceptions import TitleInvalidError
from app.domains.documents.listing import ActivityRanker
from app.domains.documents.schemas import (
    DeleteResponse, DocumentCreate, DocumentDetailResponse, DocumentListQuery,
    DocumentListResponse, DocumentMutationResponse, DocumentResponse, DocumentUpdate,
    ListingOptionsResponse, PageCreate, PageResponse, SponsorOption, SupportRequest,
    SupportResponse,
)
from app.domains.documents.services import DocumentService, ListingService, SupportService
from app.domains.identity.entities import User


router = APIRouter(prefix="/documents", tags=["documents"])


def get_event_sink() -> EventSink:
    """Приемник доменных событий; в тестах подменяется через dependency_overrides"""
    return LoggingEventSink()


def get_activity_ranker(db: AsyncSession = Depends(get_db)) -> ActivityRanker:
    return AnnotationActivityRanker(db, settings.activity_window_days)


def _document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        uuid=document.uuid,
        title=document.title,
        slug=document.slug,
        publish_state=document.publish_state.value,
        discussion_state=document.discussion_state.value,
        sponsor_ids=sorted(document.sponsor_ids, key=str),
        created_at=document.created_at,
        updated_at=document.updated_at,
        deleted_at=document.deleted_at
    )


def _http_error(error: Exception) -> HTTPException:
    """Доменные исключения в HTTP-ответы"""
    if isinstance(error, TitleInvalidError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": DOCUMENT_TITLE_INVALID, "title": error.title}
        )
    if isinstance(error, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))


@router.get("/", response_model=DocumentListResponse)
async def list_documents(
    order: Optional[str] = None,
    order_dir: Optional[str] = None,
    q: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    discussion_state: Optional[List[str]] = Query(None),
    sponsor_id: Optional[List[str]] = Query(None),
    publish_state: Optional[List[str]] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    ranker: ActivityRanker = Depends(get_activity_ranker),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Список документов; некорректные параметры заменяются умолчаниями"""
    query = DocumentListQuery(
        order=order,
        order_dir=order_dir,
        q=q,
        page=page,
        limit=limit,
        discussion_state=discussion_state,
        sponsor_id=sponsor_id,
        publish_state=publish_state
    )
    listing_service = ListingService(db, ranker=ranker, notifier=flash)
    result = await listing_service.list_documents(query, user)

    return DocumentListResponse(
        documents=[_document_response(document) for document in result.documents],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
        last_page=result.last_page,
        messages=flash.as_list()
    )


@router.get("/options", response_model=ListingOptionsResponse)
async def get_listing_options(db: AsyncSession = Depends(get_db)):
    """Спонсоры и состояния для фильтров списка"""
    options = await ListingService(db).query_options()
    return ListingOptionsResponse(
        sponsors=[
            SponsorOption(uuid=sponsor.uuid, name=sponsor.name, display_name=sponsor.display_name)
            for sponsor in options.sponsors
        ],
        publish_states=options.publish_states,
        discussion_states=options.discussion_states
    )


@router.post("/", response_model=DocumentMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    events: EventSink = Depends(get_event_sink),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Создание нового документа"""
    document_service = DocumentService(db, events)
    try:
        document = await document_service.create_document(document_data, user)
    except (ValueError, PermissionError, LookupError) as e:
        raise _http_error(e)

    flash.flash(DOCUMENT_CREATED, "success")
    return DocumentMutationResponse(document=_document_response(document), messages=flash.as_list())


@router.get("/{slug}", response_model=DocumentDetailResponse)
async def get_document(
    slug: str,
    page: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user)
):
    """Документ по slug или UUID с указанной страницей"""
    document_service = DocumentService(db)
    try:
        detail = await document_service.get_document_detail(slug, user, page)
    except LookupError as e:
        raise _http_error(e)

    return DocumentDetailResponse(
        document=_document_response(detail.document),
        page=detail.page,
        total_pages=detail.total_pages,
        content=detail.content.content if detail.content else None,
        intro_text=detail.intro_text,
        support=detail.support_counts.support,
        oppose=detail.support_counts.oppose,
        user_support=detail.user_support
    )


@router.put("/{document_uuid}", response_model=DocumentMutationResponse)
async def update_document(
    document_uuid: uuid.UUID,
    update_data: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    events: EventSink = Depends(get_event_sink),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Обновление документа"""
    document_service = DocumentService(db, events)
    try:
        document = await document_service.update_document(document_uuid, update_data, user)
    except (ValueError, PermissionError, LookupError) as e:
        raise _http_error(e)

    flash.flash(DOCUMENT_UPDATED, "success")
    return DocumentMutationResponse(document=_document_response(document), messages=flash.as_list())


@router.delete("/{document_uuid}", response_model=DeleteResponse)
async def delete_document(
    document_uuid: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Мягкое удаление документа со ссылкой на восстановление"""
    document_service = DocumentService(db)
    try:
        outcome = await document_service.delete_document(document_uuid, user)
    except (ValueError, PermissionError, LookupError) as e:
        raise _http_error(e)

    flash.flash(DOCUMENT_DELETED.format(restore_path=outcome.restore_path), "success")
    return DeleteResponse(
        document=_document_response(outcome.document),
        restore_path=outcome.restore_path,
        messages=flash.as_list()
    )


@router.post("/{document_uuid}/restore", response_model=DocumentMutationResponse)
async def restore_document(
    document_uuid: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Восстановление удаленного документа"""
    document_service = DocumentService(db)
    try:
        document = await document_service.restore_document(document_uuid, user)
    except (ValueError, PermissionError, LookupError) as e:
        raise _http_error(e)

    flash.flash(DOCUMENT_RESTORED, "success")
    return DocumentMutationResponse(document=_document_response(document), messages=flash.as_list())


@router.post("/{document_uuid}/pages", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
async def add_page(
    document_uuid: uuid.UUID,
    page_data: PageCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    flash: FlashMessages = Depends(get_flash_messages)
):
    document_service = DocumentService(db)
    try:
        content = await document_service.add_page(document_uuid, page_data.content, user)
    except (PermissionError, LookupError) as e:
        raise _http_error(e)

    flash.flash(DOCUMENT_PAGE_ADDED, "success")
    return PageResponse(
        uuid=content.uuid,
        document_id=content.document_id,
        page=content.page,
        content=content.content,
        messages=flash.as_list()
    )


@router.put("/{document_uuid}/support", response_model=SupportResponse)
async def update_support(
    document_uuid: uuid.UUID,
    support_data: SupportRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    events: EventSink = Depends(get_event_sink),
    flash: FlashMessages = Depends(get_flash_messages)
):
    """Голос за или против документа; повторный голос снимает его"""
    support_service = SupportService(db, events)
    try:
        transition = await support_service.update_support(document_uuid, user, support_data.support)
    except LookupError as e:
        raise _http_error(e)

    counts = await support_service.get_support_counts(document_uuid)
    flash.flash(DOCUMENT_SUPPORT_UPDATED, "success")
    return SupportResponse(
        previous=transition.previous,
        support=transition.new,
        support_count=counts.support,
        oppose_count=counts.oppose,
        messages=flash.as_list()
    )
