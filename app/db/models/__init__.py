from app.db.base import Base
from app.db.models.folder import Folder
from app.db.models.note import Note

__all__ = [
    "Base",
    "Folder",
    "Note"
]
