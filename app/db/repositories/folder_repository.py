from typing import Optional, List, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
import uuid

from app.db.models.folder import Folder as FolderModel

if TYPE_CHECKING:
    from app.domains.notebook.entities import Folder


class FolderRepository:
    """Репозиторий папок

    Все запросы ограничены владельцем. Транзакцией управляет сервис:
    репозиторий делает только flush.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, folder: "Folder") -> "Folder":
        """Сохранение новой папки"""
        db_folder = FolderModel(
            uuid=folder.uuid,
            name=folder.name,
            owner_id=folder.owner_id,
            created_at=folder.created_at,
            updated_at=folder.updated_at
        )

        self.session.add(db_folder)
        await self.session.flush()
        return self._to_domain(db_folder)

    async def get_owned(
        self,
        folder_uuid: uuid.UUID,
        owner_id: str,
        lock: bool = False
    ) -> Optional["Folder"]:
        """Получение папки владельца по UUID (lock - FOR UPDATE)"""
        db_folder = await self._get_model(folder_uuid, owner_id, lock=lock)
        return self._to_domain(db_folder) if db_folder else None

    async def get_for_reference(self, folder_uuid: uuid.UUID, owner_id: str) -> Optional["Folder"]:
        """Папка как цель ссылки заметки: FOR KEY SHARE, удаление ждет коммита"""
        db_folder = await self._get_model(folder_uuid, owner_id, key_share=True)
        return self._to_domain(db_folder) if db_folder else None

    async def list_by_owner(self, owner_id: str) -> List["Folder"]:
        """Папки владельца по имени"""
        result = await self.session.execute(
            select(FolderModel)
            .where(FolderModel.owner_id == owner_id)
            .order_by(FolderModel.name.asc(), FolderModel.uuid.asc())
        )
        return [self._to_domain(folder) for folder in result.scalars().all()]

    async def update(self, folder: "Folder") -> Optional["Folder"]:
        """Обновление папки"""
        db_folder = await self._get_model(folder.uuid, folder.owner_id)
        if db_folder is None:
            return None

        db_folder.name = folder.name
        db_folder.updated_at = folder.updated_at
        await self.session.flush()
        return self._to_domain(db_folder)

    async def delete(self, folder_uuid: uuid.UUID, owner_id: str) -> bool:
        """Удаление папки"""
        stmt = delete(FolderModel).where(
            and_(FolderModel.uuid == folder_uuid, FolderModel.owner_id == owner_id)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def _get_model(
        self,
        folder_uuid: uuid.UUID,
        owner_id: str,
        lock: bool = False,
        key_share: bool = False
    ) -> Optional[FolderModel]:
        query = select(FolderModel).where(
            and_(FolderModel.uuid == folder_uuid, FolderModel.owner_id == owner_id)
        )
        # SQLite игнорирует FOR UPDATE, там хватает блокировки записи
        if lock:
            query = query.with_for_update()
        elif key_share:
            query = query.with_for_update(read=True, key_share=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    def _to_domain(self, db_folder: FolderModel) -> "Folder":
        """Преобразование модели БД в доменную сущность"""
        from app.domains.notebook.entities import Folder

        return Folder(
            uuid=db_folder.uuid,
            name=db_folder.name,
            owner_id=db_folder.owner_id,
            created_at=db_folder.created_at,
            updated_at=db_folder.updated_at
        )
