from app.db.repositories.folder_repository import FolderRepository
from app.db.repositories.note_repository import NoteRepository

__all__ = [
    "FolderRepository",
    "NoteRepository"
]
