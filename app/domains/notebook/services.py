import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, List, Dict
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, InvalidReference, StorageFailure, Unauthenticated
from app.db.repositories.folder_repository import FolderRepository
from app.db.repositories.note_repository import NoteRepository
from app.domains.notebook.entities import Folder, Note, FolderDeletion
from app.domains.notebook.schemas import FolderCreate, FolderRename, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)


class NotebookService:
    """Сервис папок и заметок

    Каждая операция - одна транзакция: изменение сущности и все
    каскадные правки либо видны целиком, либо не видны вовсе.
    Чужие и отсутствующие сущности неразличимы (NotFound).
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.folder_repository = FolderRepository(session)
        self.note_repository = NoteRepository(session)

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator[None]:
        """Коммит при успехе, полный откат при любой ошибке"""
        try:
            yield
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage failure during {operation}", exc_info=True)
            raise StorageFailure(f"Storage failure during {operation}", {"operation": operation}) from e
        except BaseException:
            await self.session.rollback()
            raise

    @staticmethod
    def _require_owner(owner_id: Optional[str]) -> str:
        if not owner_id:
            raise Unauthenticated("User identity is required")
        return owner_id

    async def _get_owned_folder(self, folder_uuid: uuid.UUID, owner_id: str, lock: bool = False) -> Folder:
        folder = await self.folder_repository.get_owned(folder_uuid, owner_id, lock=lock)
        if folder is None:
            logger.warning(f"Folder {folder_uuid} not found for owner {owner_id}")
            raise NotFound("Folder not found", {"folder_id": str(folder_uuid)})
        return folder

    async def _get_owned_note(self, note_uuid: uuid.UUID, owner_id: str) -> Note:
        note = await self.note_repository.get_owned(note_uuid, owner_id)
        if note is None:
            logger.warning(f"Note {note_uuid} not found for owner {owner_id}")
            raise NotFound("Note not found", {"note_id": str(note_uuid)})
        return note

    async def _check_folder_reference(self, folder_id: Optional[uuid.UUID], owner_id: str) -> None:
        """folder_id должен указывать на папку того же владельца"""
        if folder_id is None:
            return
        folder = await self.folder_repository.get_for_reference(folder_id, owner_id)
        if folder is None:
            logger.warning(f"Rejected reference to folder {folder_id} for owner {owner_id}")
            raise InvalidReference("Invalid folder", {"folder_id": str(folder_id)})

    # Папки

    async def list_folders(self, owner_id: str, include_notes: bool = False) -> List[Folder]:
        """Получение папок пользователя по имени"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("list_folders"):
            folders = await self.folder_repository.list_by_owner(owner_id)

            if include_notes:
                notes_by_folder: Dict[uuid.UUID, List[Note]] = {folder.uuid: [] for folder in folders}
                for note in await self.note_repository.list_by_owner(owner_id):
                    if note.folder_id in notes_by_folder:
                        notes_by_folder[note.folder_id].append(note)
                for folder in folders:
                    folder.notes = notes_by_folder[folder.uuid]

        return folders

    async def get_folder(self, folder_uuid: uuid.UUID, owner_id: str) -> Folder:
        """Получение папки по UUID"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("get_folder"):
            return await self._get_owned_folder(folder_uuid, owner_id)

    async def create_folder(self, folder_data: FolderCreate, owner_id: str) -> Folder:
        """Создание новой папки"""
        owner_id = self._require_owner(owner_id)
        folder = Folder.create_folder(name=folder_data.name, owner_id=owner_id)

        async with self._unit_of_work("create_folder"):
            created_folder = await self.folder_repository.add(folder)

        logger.info(f"Folder {created_folder.uuid} created for owner {owner_id}")
        return created_folder

    async def rename_folder(self, folder_uuid: uuid.UUID, folder_data: FolderRename, owner_id: str) -> Folder:
        """Переименование папки"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("rename_folder"):
            folder = await self._get_owned_folder(folder_uuid, owner_id)
            folder.rename(folder_data.name)
            updated_folder = await self.folder_repository.update(folder)

        logger.info(f"Folder {folder_uuid} renamed")
        return updated_folder

    async def delete_folder(
        self,
        folder_uuid: uuid.UUID,
        owner_id: str,
        cascade_notes: bool = False
    ) -> FolderDeletion:
        """Удаление папки

        По умолчанию заметки открепляются (folder_id = NULL) и остаются.
        При cascade_notes=True заметки папки удаляются вместе с ней.
        """
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("delete_folder"):
            # Блокировка строки папки: новые ссылки на нее ждут коммита
            folder = await self._get_owned_folder(folder_uuid, owner_id, lock=True)

            if cascade_notes:
                affected_note_ids = await self.note_repository.list_ids_in_folder(folder_uuid, owner_id)
                await self.note_repository.delete_in_folder(folder_uuid, owner_id)
                detached_notes: List[Note] = []
            else:
                detached_notes = await self.note_repository.detach_from_folder(folder_uuid, owner_id)
                affected_note_ids = [note.uuid for note in detached_notes]

            await self.folder_repository.delete(folder_uuid, owner_id)

        logger.info(
            f"Folder {folder_uuid} deleted for owner {owner_id}: "
            f"{len(affected_note_ids)} notes {'deleted' if cascade_notes else 'detached'}"
        )
        return FolderDeletion(
            folder=folder,
            cascade_notes=cascade_notes,
            affected_note_ids=affected_note_ids,
            detached_notes=detached_notes
        )

    # Заметки

    async def list_notes(self, owner_id: str, folder_uuid: Optional[uuid.UUID] = None) -> List[Note]:
        """Получение заметок пользователя, свежие первыми"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("list_notes"):
            if folder_uuid is not None:
                await self._get_owned_folder(folder_uuid, owner_id)
            return await self.note_repository.list_by_owner(owner_id, folder_id=folder_uuid)

    async def get_note(self, note_uuid: uuid.UUID, owner_id: str) -> Note:
        """Получение заметки по UUID"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("get_note"):
            return await self._get_owned_note(note_uuid, owner_id)

    async def create_note(self, note_data: NoteCreate, owner_id: str) -> Note:
        """Создание новой заметки"""
        owner_id = self._require_owner(owner_id)
        note = Note.create_note(
            title=note_data.title,
            owner_id=owner_id,
            content=note_data.content,
            folder_id=note_data.folder_id
        )

        async with self._unit_of_work("create_note"):
            await self._check_folder_reference(note.folder_id, owner_id)
            created_note = await self.note_repository.add(note)

        logger.info(f"Note {created_note.uuid} created for owner {owner_id}")
        return created_note

    async def update_note(self, note_uuid: uuid.UUID, update_data: NoteUpdate, owner_id: str) -> Note:
        """Частичное обновление заметки

        Непереданные поля сохраняют значения; updated_at обновляется
        при каждом успешном вызове.
        """
        owner_id = self._require_owner(owner_id)
        fields = update_data.model_fields_set

        async with self._unit_of_work("update_note"):
            note = await self._get_owned_note(note_uuid, owner_id)

            if "folder_id" in fields:
                await self._check_folder_reference(update_data.folder_id, owner_id)
                note.move_to(update_data.folder_id)

            if "title" in fields:
                note.update_title(update_data.title)

            if "content" in fields:
                note.update_content(update_data.content)

            note.touch()
            updated_note = await self.note_repository.update(note)

        logger.info(f"Note {note_uuid} updated ({', '.join(sorted(fields)) or 'touch'})")
        return updated_note

    async def delete_note(self, note_uuid: uuid.UUID, owner_id: str) -> Note:
        """Удаление заметки"""
        owner_id = self._require_owner(owner_id)

        async with self._unit_of_work("delete_note"):
            note = await self._get_owned_note(note_uuid, owner_id)
            await self.note_repository.delete(note_uuid, owner_id)

        logger.info(f"Note {note_uuid} deleted for owner {owner_id}")
        return note
