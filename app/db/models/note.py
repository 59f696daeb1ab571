from sqlalchemy import Column, String, Text, ForeignKey, UUID, Index
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Note(BaseModel):
    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_owner_id_updated_at", "owner_id", "updated_at"),
    )

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    owner_id = Column(String(255), nullable=False, index=True)
    folder_id = Column(
        UUID(as_uuid=True),
        ForeignKey("folders.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Relationships
    folder = relationship("Folder", back_populates="notes")
