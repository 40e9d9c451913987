from app.db.repositories.user_repository import UserRepository
from app.db.repositories.sponsor_repository import SponsorRepository
from app.db.repositories.document_repository import DocumentRepository
from app.db.repositories.meta_repository import DocumentMetaRepository
from app.db.repositories.annotation_repository import AnnotationRepository, AnnotationActivityRanker

__all__ = [
    "UserRepository",
    "SponsorRepository",
    "DocumentRepository",
    "DocumentMetaRepository",
    "AnnotationRepository",
    "AnnotationActivityRanker"
]
