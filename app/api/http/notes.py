from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.core.auth import get_current_user_id
from app.core.db import get_db
from app.domains.notebook.schemas import (
    NoteCreate, NoteUpdate, NoteResponse, NoteListResponse
)
from app.domains.notebook.services import NotebookService

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    folder_id: Optional[uuid.UUID] = Query(None),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение списка заметок"""
    notebook_service = NotebookService(db)

    notes = await notebook_service.list_notes(owner_id, folder_uuid=folder_id)

    return NoteListResponse(
        notes=[NoteResponse.model_validate(note) for note in notes],
        total=len(notes)
    )


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Создание новой заметки"""
    notebook_service = NotebookService(db)

    note = await notebook_service.create_note(note_data, owner_id)

    return NoteResponse.model_validate(note)


@router.get("/{note_uuid}", response_model=NoteResponse)
async def get_note(
    note_uuid: uuid.UUID,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение заметки по UUID"""
    notebook_service = NotebookService(db)

    note = await notebook_service.get_note(note_uuid, owner_id)

    return NoteResponse.model_validate(note)


@router.api_route("/{note_uuid}", methods=["PATCH", "PUT"], response_model=NoteResponse)
async def update_note(
    note_uuid: uuid.UUID,
    update_data: NoteUpdate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Обновление заметки (только переданные поля)"""
    notebook_service = NotebookService(db)

    note = await notebook_service.update_note(note_uuid, update_data, owner_id)

    return NoteResponse.model_validate(note)


@router.delete("/{note_uuid}", response_model=NoteResponse)
async def delete_note(
    note_uuid: uuid.UUID,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление заметки; возвращает удаленную заметку"""
    notebook_service = NotebookService(db)

    note = await notebook_service.delete_note(note_uuid, owner_id)

    return NoteResponse.model_validate(note)
