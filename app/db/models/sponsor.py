from sqlalchemy import Column, String, ForeignKey, Table, UUID
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.db.base import BaseModel


sponsor_members = Table(
    "sponsor_members",
    Base.metadata,
    Column("sponsor_id", UUID(as_uuid=True), ForeignKey("sponsors.uuid", ondelete="CASCADE"), primary_key=True),
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.uuid", ondelete="CASCADE"), primary_key=True),
)


class Sponsor(BaseModel):
    __tablename__ = "sponsors"

    STATUS_ACTIVE = "active"
    STATUS_PENDING = "pending"

    name = Column(String(255), unique=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    status = Column(String(50), default=STATUS_PENDING, nullable=False)

    # Relationships
    members = relationship("User", secondary=sponsor_members, back_populates="sponsors")
    documents = relationship("Document", secondary="document_sponsors", back_populates="sponsors")
