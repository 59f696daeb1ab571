from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime


def _strip_required(v, field_name: str):
    """Обрезка пробелов до проверки длины"""
    if v is None:
        raise ValueError(f"{field_name} cannot be empty")
    if not isinstance(v, str):
        return v
    if not v.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return v.strip()


class FolderBase(BaseModel):
    """Базовая схема папки"""
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v):
        return _strip_required(v, 'Name')


class FolderCreate(FolderBase):
    """Схема для создания папки"""
    pass


class FolderRename(FolderBase):
    """Схема для переименования папки"""
    pass


class NoteCreate(BaseModel):
    """Схема для создания заметки"""
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = Field(default="", max_length=1000000)
    folder_id: Optional[uuid.UUID] = None

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        return _strip_required(v, 'Title')

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return v or ""


class NoteUpdate(BaseModel):
    """Схема для частичного обновления заметки

    Учитываются только переданные поля (model_fields_set):
    явный folder_id=null убирает заметку из папки.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=1000000)
    folder_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        return _strip_required(v, 'Title')

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return v or ""


class NoteResponse(BaseModel):
    """Схема для ответа с данными заметки"""
    uuid: uuid.UUID
    title: str
    content: str
    folder_id: Optional[uuid.UUID] = None
    owner_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteListResponse(BaseModel):
    """Схема для списка заметок"""
    notes: List[NoteResponse]
    total: int


class FolderResponse(BaseModel):
    """Схема для ответа с данными папки"""
    uuid: uuid.UUID
    name: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    notes: Optional[List[NoteResponse]] = None

    model_config = ConfigDict(from_attributes=True)


class FolderListResponse(BaseModel):
    """Схема для списка папок"""
    folders: List[FolderResponse]
    total: int


class FolderDeletionResponse(BaseModel):
    """Схема для ответа об удалении папки"""
    folder: FolderResponse
    cascade_notes: bool
    affected_note_ids: List[uuid.UUID]
    detached_notes: List[NoteResponse]

    model_config = ConfigDict(from_attributes=True)
