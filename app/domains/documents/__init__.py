from app.domains.documents.entities import Document, DocumentContent
from app.domains.documents.publish_states import PublishState, DiscussionState
from app.domains.documents.schemas import (
    DocumentCreate, DocumentUpdate, DocumentResponse, DocumentListQuery,
    DocumentListResponse, DocumentDetailResponse, DeleteResponse,
    PageCreate, PageResponse, SupportRequest, SupportResponse,
    ListingOptionsResponse
)

# Сервисы импортируются напрямую из app.domains.documents.services:
# они зависят от репозиториев, а репозитории от сущностей этого пакета.

__all__ = [
    "Document", "DocumentContent", "PublishState", "DiscussionState",
    "DocumentCreate", "DocumentUpdate", "DocumentResponse", "DocumentListQuery",
    "DocumentListResponse", "DocumentDetailResponse", "DeleteResponse",
    "PageCreate", "PageResponse", "SupportRequest", "SupportResponse",
    "ListingOptionsResponse"
]
