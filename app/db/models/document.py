from sqlalchemy import (
    Boolean, Column, ForeignKey, Integer, String, Table, Text, UUID, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.db.base import BaseModel, SoftDeleteMixin


document_sponsors = Table(
    "document_sponsors",
    Base.metadata,
    Column("document_id", UUID(as_uuid=True), ForeignKey("documents.uuid", ondelete="CASCADE"), primary_key=True),
    Column("sponsor_id", UUID(as_uuid=True), ForeignKey("sponsors.uuid", ondelete="CASCADE"), primary_key=True),
)


class Document(SoftDeleteMixin, BaseModel):
    __tablename__ = "documents"
    
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    publish_state = Column(String(32), nullable=False, index=True)
    discussion_state = Column(String(32), nullable=False)
    is_template = Column(Boolean, default=False, nullable=False)
    
    # Relationships
    sponsors = relationship(
        "Sponsor", secondary=document_sponsors, back_populates="documents", lazy="selectin"
    )
    contents = relationship(
        "DocumentContent", back_populates="document", order_by="DocumentContent.page"
    )
    meta = relationship("DocumentMeta", back_populates="document")
    annotations = relationship("Annotation", back_populates="document")


class DocumentContent(SoftDeleteMixin, BaseModel):
    __tablename__ = "document_contents"
    __table_args__ = (UniqueConstraint("document_id", "page"),)

    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid"), nullable=False, index=True)
    page = Column(Integer, nullable=False)
    content = Column(Text, default="", nullable=False)

    # Relationships
    document = relationship("Document", back_populates="contents")


class DocumentMeta(SoftDeleteMixin, BaseModel):
    __tablename__ = "document_meta"
    __table_args__ = (UniqueConstraint("document_id", "user_id", "meta_key"),)

    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid"), nullable=True)
    meta_key = Column(String(100), nullable=False)
    meta_value = Column(Text, nullable=True)

    # Relationships
    document = relationship("Document", back_populates="meta")


class Annotation(SoftDeleteMixin, BaseModel):
    __tablename__ = "annotations"

    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid"), nullable=False)
    content = Column(Text, default="", nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)

    # Relationships
    document = relationship("Document", back_populates="annotations")
