import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from app.core.errors import InvalidInput
from app.db.base import next_timestamp, utcnow


def clean_text(value: Optional[str], field_name: str) -> str:
    """Обрезка пробелов; пустое значение недопустимо"""
    if value is None or not value.strip():
        raise InvalidInput(f"{field_name} cannot be empty", {"field": field_name})
    return value.strip()


class Folder:
    """Сущность папки"""

    def __init__(
        self,
        uuid: uuid.UUID,
        name: str,
        owner_id: str,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        notes: Optional[List["Note"]] = None
    ):
        self.uuid = uuid
        self.name = name
        self.owner_id = owner_id
        self.created_at = created_at or utcnow()
        self.updated_at = updated_at or self.created_at
        # Заполняется только при выборке с заметками
        self.notes = notes

    def rename(self, new_name: str) -> None:
        """Переименование папки"""
        self.name = clean_text(new_name, "name")
        self.updated_at = next_timestamp(self.updated_at)

    @classmethod
    def create_folder(cls, name: str, owner_id: str) -> "Folder":
        """Создание новой папки"""
        return cls(
            uuid=uuid.uuid4(),
            name=clean_text(name, "name"),
            owner_id=owner_id
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Folder):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Folder(uuid={self.uuid}, name={self.name})"


class Note:
    """Сущность заметки"""

    def __init__(
        self,
        uuid: uuid.UUID,
        title: str,
        owner_id: str,
        content: str = "",
        folder_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.title = title
        self.content = content or ""
        self.owner_id = owner_id
        self.folder_id = folder_id
        self.created_at = created_at or utcnow()
        self.updated_at = updated_at or self.created_at

    @property
    def is_filed(self) -> bool:
        return self.folder_id is not None

    def update_title(self, new_title: str) -> None:
        """Обновление заголовка заметки"""
        self.title = clean_text(new_title, "title")

    def update_content(self, new_content: Optional[str]) -> None:
        """Обновление содержимого; None хранится как пустая строка"""
        self.content = new_content or ""

    def move_to(self, folder_id: Optional[uuid.UUID]) -> None:
        """Перемещение в папку (None - без папки)"""
        self.folder_id = folder_id

    def touch(self) -> None:
        self.updated_at = next_timestamp(self.updated_at)

    @classmethod
    def create_note(
        cls,
        title: str,
        owner_id: str,
        content: Optional[str] = "",
        folder_id: Optional[uuid.UUID] = None
    ) -> "Note":
        """Создание новой заметки"""
        return cls(
            uuid=uuid.uuid4(),
            title=clean_text(title, "title"),
            owner_id=owner_id,
            content=content or "",
            folder_id=folder_id
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Note):
            return False
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    def __repr__(self) -> str:
        return f"Note(uuid={self.uuid}, title={self.title}, folder_id={self.folder_id})"


@dataclass
class FolderDeletion:
    """Результат удаления папки"""
    folder: Folder
    cascade_notes: bool
    affected_note_ids: List[uuid.UUID] = field(default_factory=list)
    # Состояние открепленных заметок после удаления (пусто при каскаде)
    detached_notes: List[Note] = field(default_factory=list)
