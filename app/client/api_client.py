import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from app.client.mirror import NotebookMirror
from app.core.errors import StorageFailure, error_from_dict
from app.domains.notebook.schemas import (
    FolderDeletionResponse, FolderListResponse, FolderResponse,
    NoteListResponse, NoteResponse
)

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class NotebookClient:
    """HTTP-клиент сервиса заметок, поддерживающий локальное зеркало

    Каждый успешный ответ сразу применяется к зеркалу, без повторной
    загрузки всего списка. Ошибки сервера поднимаются как типизированные
    NotebookError.
    """

    def __init__(self, http: httpx.AsyncClient, mirror: Optional[NotebookMirror] = None):
        self.http = http
        self.mirror = mirror or NotebookMirror()

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StorageFailure(f"Request failed: {e}") from e

        if response.is_success:
            return response.json()

        try:
            payload = response.json().get("error") or {}
        except ValueError:
            payload = {}
        error = error_from_dict(payload) if payload else StorageFailure(
            f"Unexpected response {response.status_code}", {"status_code": response.status_code}
        )
        logger.warning(f"{method} {url} -> {response.status_code} {error.code.value}")
        raise error

    async def refresh(self) -> NotebookMirror:
        """Полная загрузка папок и заметок"""
        folders = FolderListResponse.model_validate(await self._request("GET", "/folders/"))
        notes = NoteListResponse.model_validate(await self._request("GET", "/notes/"))
        self.mirror.load(folders.folders, notes.notes)
        return self.mirror

    # Папки

    async def create_folder(self, name: str) -> FolderResponse:
        data = await self._request("POST", "/folders/", json={"name": name})
        return self.mirror.upsert_folder(FolderResponse.model_validate(data))

    async def rename_folder(self, folder_uuid: uuid.UUID, name: str) -> FolderResponse:
        with self.mirror.transaction() as tx:
            current = self.mirror.get_folder(folder_uuid)
            if current is not None:
                tx.upsert_folder(current.model_copy(update={"name": name.strip()}))
            data = await self._request("PUT", f"/folders/{folder_uuid}", json={"name": name})
        return self.mirror.upsert_folder(FolderResponse.model_validate(data))

    async def delete_folder(self, folder_uuid: uuid.UUID, cascade_notes: bool = False) -> FolderDeletionResponse:
        data = await self._request(
            "DELETE",
            f"/folders/{folder_uuid}",
            params={"cascade_notes": str(cascade_notes).lower()}
        )
        deletion = FolderDeletionResponse.model_validate(data)
        self.mirror.apply_folder_deletion(deletion)
        return deletion

    # Заметки

    async def create_note(
        self,
        title: str,
        content: str = "",
        folder_id: Optional[uuid.UUID] = None
    ) -> NoteResponse:
        payload = {
            "title": title,
            "content": content,
            "folder_id": str(folder_id) if folder_id else None,
        }
        data = await self._request("POST", "/notes/", json=payload)
        return self.mirror.upsert_note(NoteResponse.model_validate(data))

    async def update_note(
        self,
        note_uuid: uuid.UUID,
        title: Optional[str] = _UNSET,
        content: Optional[str] = _UNSET,
        folder_id: Optional[uuid.UUID] = _UNSET
    ) -> NoteResponse:
        """Частичное обновление; передаются только явно заданные поля"""
        patch: Dict[str, Any] = {}
        if title is not _UNSET:
            patch["title"] = title
        if content is not _UNSET:
            patch["content"] = content
        if folder_id is not _UNSET:
            patch["folder_id"] = str(folder_id) if folder_id else None

        with self.mirror.transaction() as tx:
            current = self.mirror.get_note(note_uuid)
            if current is not None:
                optimistic = dict(patch)
                if "folder_id" in optimistic:
                    optimistic["folder_id"] = folder_id
                tx.upsert_note(current.model_copy(update=optimistic))
            data = await self._request("PATCH", f"/notes/{note_uuid}", json=patch)
        return self.mirror.upsert_note(NoteResponse.model_validate(data))

    async def delete_note(self, note_uuid: uuid.UUID) -> NoteResponse:
        data = await self._request("DELETE", f"/notes/{note_uuid}")
        note = NoteResponse.model_validate(data)
        self.mirror.remove_note(note.uuid)
        return note

    async def summarize_note(self, note_uuid: uuid.UUID) -> NoteResponse:
        """Сокращение заметки и запись результата обычным обновлением"""
        note = self.mirror.get_note(note_uuid)
        if note is None:
            note = NoteResponse.model_validate(await self._request("GET", f"/notes/{note_uuid}"))

        data = await self._request("POST", "/summarize", json={"content": note.content})
        return await self.update_note(note_uuid, content=data["summary"])
