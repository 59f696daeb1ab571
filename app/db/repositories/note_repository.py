from typing import Optional, List, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
import uuid

from app.db.base import next_timestamp
from app.db.models.note import Note as NoteModel

if TYPE_CHECKING:
    from app.domains.notebook.entities import Note


class NoteRepository:
    """Репозиторий заметок

    Все запросы ограничены владельцем. Транзакцией управляет сервис.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, note: "Note") -> "Note":
        """Сохранение новой заметки"""
        db_note = NoteModel(
            uuid=note.uuid,
            title=note.title,
            content=note.content,
            owner_id=note.owner_id,
            folder_id=note.folder_id,
            created_at=note.created_at,
            updated_at=note.updated_at
        )

        self.session.add(db_note)
        await self.session.flush()
        return self._to_domain(db_note)

    async def get_owned(self, note_uuid: uuid.UUID, owner_id: str) -> Optional["Note"]:
        """Получение заметки владельца по UUID"""
        db_note = await self._get_model(note_uuid, owner_id)
        return self._to_domain(db_note) if db_note else None

    async def list_by_owner(
        self,
        owner_id: str,
        folder_id: Optional[uuid.UUID] = None
    ) -> List["Note"]:
        """Заметки владельца, свежие первыми"""
        query = select(NoteModel).where(NoteModel.owner_id == owner_id)

        if folder_id is not None:
            query = query.where(NoteModel.folder_id == folder_id)

        result = await self.session.execute(
            query.order_by(NoteModel.updated_at.desc(), NoteModel.uuid.asc())
        )
        return [self._to_domain(note) for note in result.scalars().all()]

    async def list_ids_in_folder(self, folder_id: uuid.UUID, owner_id: str) -> List[uuid.UUID]:
        """UUID заметок в папке"""
        result = await self.session.execute(
            select(NoteModel.uuid)
            .where(and_(NoteModel.folder_id == folder_id, NoteModel.owner_id == owner_id))
            .order_by(NoteModel.uuid.asc())
        )
        return list(result.scalars().all())

    async def update(self, note: "Note") -> Optional["Note"]:
        """Обновление заметки"""
        db_note = await self._get_model(note.uuid, note.owner_id)
        if db_note is None:
            return None

        db_note.title = note.title
        db_note.content = note.content
        db_note.folder_id = note.folder_id
        db_note.updated_at = note.updated_at
        await self.session.flush()
        return self._to_domain(db_note)

    async def detach_from_folder(self, folder_id: uuid.UUID, owner_id: str) -> List["Note"]:
        """Открепление всех заметок папки; возвращает их новое состояние

        updated_at каждой заметки растет относительно ее прежнего значения.
        """
        result = await self.session.execute(
            select(NoteModel)
            .where(and_(NoteModel.folder_id == folder_id, NoteModel.owner_id == owner_id))
            .with_for_update()
        )
        db_notes = result.scalars().all()

        for db_note in db_notes:
            db_note.folder_id = None
            db_note.updated_at = next_timestamp(db_note.updated_at)
        await self.session.flush()

        # Порядок списка: updated_at по убыванию, затем uuid
        db_notes = sorted(db_notes, key=lambda note: (note.updated_at, -note.uuid.int), reverse=True)
        return [self._to_domain(db_note) for db_note in db_notes]

    async def delete(self, note_uuid: uuid.UUID, owner_id: str) -> bool:
        """Удаление заметки"""
        stmt = delete(NoteModel).where(
            and_(NoteModel.uuid == note_uuid, NoteModel.owner_id == owner_id)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def delete_in_folder(self, folder_id: uuid.UUID, owner_id: str) -> int:
        """Удаление всех заметок папки"""
        stmt = delete(NoteModel).where(
            and_(NoteModel.folder_id == folder_id, NoteModel.owner_id == owner_id)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def _get_model(self, note_uuid: uuid.UUID, owner_id: str) -> Optional[NoteModel]:
        result = await self.session.execute(
            select(NoteModel).where(
                and_(NoteModel.uuid == note_uuid, NoteModel.owner_id == owner_id)
            )
        )
        return result.scalar_one_or_none()

    def _to_domain(self, db_note: NoteModel) -> "Note":
        """Преобразование модели БД в доменную сущность"""
        from app.domains.notebook.entities import Note

        return Note(
            uuid=db_note.uuid,
            title=db_note.title,
            content=db_note.content,
            owner_id=db_note.owner_id,
            folder_id=db_note.folder_id,
            created_at=db_note.created_at,
            updated_at=db_note.updated_at
        )
