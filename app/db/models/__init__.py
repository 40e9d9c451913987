from app.db.models.sponsor import Sponsor, sponsor_members
from app.db.models.user import User
from app.db.models.document import (
    Document, DocumentContent, DocumentMeta, Annotation, document_sponsors
)

__all__ = [
    "User",
    "Sponsor",
    "sponsor_members",
    "Document",
    "DocumentContent",
    "DocumentMeta",
    "Annotation",
    "document_sponsors"
]
