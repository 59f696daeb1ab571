from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Folder(BaseModel):
    __tablename__ = "folders"

    name = Column(String(255), nullable=False)
    owner_id = Column(String(255), nullable=False, index=True)

    # Relationships
    # passive_deletes: открепление заметок делает сервис, ORM их не трогает
    notes = relationship("Note", back_populates="folder", passive_deletes=True)
