from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from app.domains.documents.publish_states import PublishState, DiscussionState


def _clean_title(v):
    if v is None:
        return v
    if not v.strip():
        raise ValueError('Title cannot be empty')
    return v.strip()


class DocumentCreate(BaseModel):
    """Схема для создания документа"""
    title: str = Field(..., min_length=1, max_length=255)
    sponsor_id: uuid.UUID

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)


class DocumentUpdate(BaseModel):
    """Схема для обновления документа"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    publish_state: Optional[PublishState] = None
    discussion_state: Optional[DiscussionState] = None
    intro_text: Optional[str] = None
    page: int = Field(1, ge=1)
    page_content: Optional[str] = Field(None, max_length=1000000)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)


class PageCreate(BaseModel):
    content: str = Field(default="", max_length=1000000)


class SupportRequest(BaseModel):
    support: bool


class DocumentListQuery(BaseModel):
    """Параметры списка документов в исходном виде.

    Значения не валидируются строго: некорректные заменяются умолчаниями
    на уровне сервиса, запрос списка не завершается ошибкой.
    """
    order: Optional[str] = None
    order_dir: Optional[str] = None
    q: Optional[str] = None
    page: Optional[str] = None
    limit: Optional[str] = None
    discussion_state: Optional[List[str]] = None
    sponsor_id: Optional[List[str]] = None
    publish_state: Optional[List[str]] = None

    def sponsor_uuids(self) -> Optional[List[uuid.UUID]]:
        """Запрошенные спонсоры; None, если фильтр не задан"""
        if not self.sponsor_id:
            return None
        sponsor_ids = []
        for value in self.sponsor_id:
            try:
                sponsor_ids.append(uuid.UUID(value))
            except ValueError:
                continue
        return sponsor_ids


class FlashMessageResponse(BaseModel):
    level: str
    message: str


class DocumentResponse(BaseModel):
    """Схема для ответа с данными документа"""
    uuid: uuid.UUID
    title: str
    slug: str
    publish_state: str
    discussion_state: str
    sponsor_ids: List[uuid.UUID]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentMutationResponse(BaseModel):
    document: DocumentResponse
    messages: List[FlashMessageResponse] = []


class DocumentListResponse(BaseModel):
    """Схема для списка документов"""
    documents: List[DocumentResponse]
    total: int
    page: int
    per_page: int
    last_page: int
    messages: List[FlashMessageResponse] = []


class DocumentDetailResponse(BaseModel):
    """Документ с текущей страницей и голосами"""
    document: DocumentResponse
    page: int
    total_pages: int
    content: Optional[str] = None
    intro_text: Optional[str] = None
    support: int
    oppose: int
    user_support: Optional[bool] = None


class DeleteResponse(BaseModel):
    document: DocumentResponse
    restore_path: str
    messages: List[FlashMessageResponse] = []


class PageResponse(BaseModel):
    uuid: uuid.UUID
    document_id: uuid.UUID
    page: int
    content: str
    messages: List[FlashMessageResponse] = []


class SupportResponse(BaseModel):
    """Результат голосования и актуальные счетчики"""
    previous: Optional[bool] = None
    support: Optional[bool] = None
    support_count: int
    oppose_count: int
    messages: List[FlashMessageResponse] = []


class SponsorOption(BaseModel):
    uuid: uuid.UUID
    name: str
    display_name: str


class ListingOptionsResponse(BaseModel):
    sponsors: List[SponsorOption]
    publish_states: List[str]
    discussion_states: List[str]
