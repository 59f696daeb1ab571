from app.domains.notebook.entities import Folder, Note, FolderDeletion
from app.domains.notebook.schemas import (
    FolderCreate, FolderRename, FolderResponse, FolderListResponse,
    FolderDeletionResponse, NoteCreate, NoteUpdate, NoteResponse,
    NoteListResponse
)
from app.domains.notebook.services import NotebookService

__all__ = [
    "Folder", "Note", "FolderDeletion",
    "FolderCreate", "FolderRename", "FolderResponse", "FolderListResponse",
    "FolderDeletionResponse", "NoteCreate", "NoteUpdate", "NoteResponse",
    "NoteListResponse",
    "NotebookService"
]
