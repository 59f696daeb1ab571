from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.auth import get_current_user_id
from app.core.db import get_db
from app.domains.notebook.schemas import (
    FolderCreate, FolderRename, FolderResponse, FolderListResponse,
    FolderDeletionResponse
)
from app.domains.notebook.services import NotebookService

router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("/", response_model=FolderListResponse)
async def list_folders(
    include_notes: bool = Query(False),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение списка папок"""
    notebook_service = NotebookService(db)

    folders = await notebook_service.list_folders(owner_id, include_notes=include_notes)

    return FolderListResponse(
        folders=[FolderResponse.model_validate(folder) for folder in folders],
        total=len(folders)
    )


@router.post("/", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    folder_data: FolderCreate,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Создание новой папки"""
    notebook_service = NotebookService(db)

    folder = await notebook_service.create_folder(folder_data, owner_id)

    return FolderResponse.model_validate(folder)


@router.get("/{folder_uuid}", response_model=FolderResponse)
async def get_folder(
    folder_uuid: uuid.UUID,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение папки по UUID"""
    notebook_service = NotebookService(db)

    folder = await notebook_service.get_folder(folder_uuid, owner_id)

    return FolderResponse.model_validate(folder)


@router.put("/{folder_uuid}", response_model=FolderResponse)
async def rename_folder(
    folder_uuid: uuid.UUID,
    folder_data: FolderRename,
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Переименование папки"""
    notebook_service = NotebookService(db)

    folder = await notebook_service.rename_folder(folder_uuid, folder_data, owner_id)

    return FolderResponse.model_validate(folder)


@router.delete("/{folder_uuid}", response_model=FolderDeletionResponse)
async def delete_folder(
    folder_uuid: uuid.UUID,
    cascade_notes: bool = Query(
        False,
        description="Удалить заметки папки вместо открепления"
    ),
    owner_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление папки

    По умолчанию заметки папки остаются без папки (folder_id = null).
    С cascade_notes=true они удаляются вместе с папкой.
    """
    notebook_service = NotebookService(db)

    deletion = await notebook_service.delete_folder(folder_uuid, owner_id, cascade_notes=cascade_notes)

    return FolderDeletionResponse.model_validate(deletion)
