"""Локальная копия папок и заметок для клиента.

Зеркало не является источником истины: оно только применяет ответы
сервера (upsert по uuid, удаление, итог удаления папки). Оптимистичные
изменения откатываются по отдельным записям, чтобы не затереть ответы
сервера, пришедшие за время запроса.
"""
import itertools
import logging
import uuid
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from app.domains.notebook.schemas import FolderDeletionResponse, FolderResponse, NoteResponse

logger = logging.getLogger(__name__)


def _newest_first(notes: Iterable[NoteResponse]) -> List[NoteResponse]:
    # Порядок как на сервере: updated_at по убыванию, затем uuid
    return sorted(notes, key=lambda note: (note.updated_at, -note.uuid.int), reverse=True)


class NotebookMirror:
    """Клиентское зеркало состояния сервера"""

    def __init__(self):
        self._folders: Dict[uuid.UUID, FolderResponse] = {}
        self._notes: Dict[uuid.UUID, NoteResponse] = {}
        self._revisions: Dict[uuid.UUID, int] = {}
        self._counter = itertools.count(1)
        self.selected_note_id: Optional[uuid.UUID] = None

    # Чтение

    @property
    def folders(self) -> List[FolderResponse]:
        return sorted(self._folders.values(), key=lambda folder: (folder.name, folder.uuid))

    @property
    def notes(self) -> List[NoteResponse]:
        return _newest_first(self._notes.values())

    @property
    def unfiled_notes(self) -> List[NoteResponse]:
        return [note for note in self.notes if note.folder_id is None]

    @property
    def selected_note(self) -> Optional[NoteResponse]:
        if self.selected_note_id is None:
            return None
        return self._notes.get(self.selected_note_id)

    def get_folder(self, folder_uuid: uuid.UUID) -> Optional[FolderResponse]:
        return self._folders.get(folder_uuid)

    def get_note(self, note_uuid: uuid.UUID) -> Optional[NoteResponse]:
        return self._notes.get(note_uuid)

    def notes_in(self, folder_uuid: uuid.UUID) -> List[NoteResponse]:
        folder = self._folders.get(folder_uuid)
        if folder is None:
            return []
        return list(folder.notes or [])

    def revision(self, entity_uuid: uuid.UUID) -> Optional[int]:
        """Номер последнего изменения записи в зеркале"""
        return self._revisions.get(entity_uuid)

    # Применение ответов сервера

    def load(self, folders: Iterable[FolderResponse], notes: Iterable[NoteResponse]) -> None:
        """Полная замена состояния (после refresh)"""
        self._revisions = {}
        self._folders = {}
        self._notes = {}
        for folder in folders:
            self._folders[folder.uuid] = folder.model_copy(update={"notes": []})
            self._bump(folder.uuid)
        for note in notes:
            self.upsert_note(note)

        if self.selected_note_id not in self._notes:
            self.selected_note_id = None

    def upsert_folder(self, folder: FolderResponse) -> FolderResponse:
        """Вставка или замена папки по uuid; вложенные заметки сохраняются"""
        existing = self._folders.get(folder.uuid)
        notes = existing.notes if existing is not None else []
        stored = folder.model_copy(update={"notes": list(notes or [])})
        self._folders[folder.uuid] = stored
        self._bump(folder.uuid)
        return stored

    def remove_folder(self, folder_uuid: uuid.UUID) -> Optional[FolderResponse]:
        folder = self._folders.pop(folder_uuid, None)
        self._bump(folder_uuid)
        return folder

    def upsert_note(self, note: NoteResponse) -> NoteResponse:
        """Вставка или замена заметки по uuid

        Заметка переносится между вложенными списками папок, если
        сменился folder_id.
        """
        previous = self._notes.get(note.uuid)
        if previous is not None and previous.folder_id is not None:
            self._detach_from_folder(previous.folder_id, note.uuid)

        self._notes[note.uuid] = note
        self._bump(note.uuid)

        if note.folder_id is not None:
            folder = self._folders.get(note.folder_id)
            if folder is not None:
                others = [n for n in (folder.notes or []) if n.uuid != note.uuid]
                folder.notes = _newest_first(others + [note])
        return note

    def remove_note(self, note_uuid: uuid.UUID) -> Optional[NoteResponse]:
        """Удаление заметки из плоского списка и из папки"""
        note = self._notes.pop(note_uuid, None)
        self._bump(note_uuid)
        if note is not None and note.folder_id is not None:
            self._detach_from_folder(note.folder_id, note_uuid)

        if self.selected_note_id == note_uuid:
            self.selected_note_id = None
        return note

    def apply_folder_deletion(self, deletion: FolderDeletionResponse) -> None:
        """Применение итога удаления папки ровно так, как сообщил сервер"""
        self.remove_folder(deletion.folder.uuid)

        detached = {note.uuid: note for note in deletion.detached_notes}
        for note_uuid in deletion.affected_note_ids:
            if not deletion.cascade_notes and note_uuid in detached:
                self.upsert_note(detached[note_uuid])
            else:
                self.remove_note(note_uuid)

        stale = [n.uuid for n in self._notes.values() if n.folder_id == deletion.folder.uuid]
        if stale:
            # Их состояние знает только сервер, исправит следующий refresh
            logger.warning(f"Mirror has {len(stale)} unreported notes in deleted folder {deletion.folder.uuid}")

    def select_note(self, note_uuid: Optional[uuid.UUID]) -> None:
        if note_uuid is not None and note_uuid not in self._notes:
            raise KeyError(f"Note {note_uuid} is not in the mirror")
        self.selected_note_id = note_uuid

    def clear_selection(self) -> None:
        self.selected_note_id = None

    # Откат

    @contextmanager
    def transaction(self) -> Iterator["MirrorTransaction"]:
        """Оптимистичные изменения: при ошибке затронутые записи восстанавливаются"""
        tx = MirrorTransaction(self)
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise

    def _bump(self, entity_uuid: uuid.UUID) -> None:
        self._revisions[entity_uuid] = next(self._counter)

    def _detach_from_folder(self, folder_uuid: uuid.UUID, note_uuid: uuid.UUID) -> None:
        folder = self._folders.get(folder_uuid)
        if folder is not None and folder.notes:
            folder.notes = [n for n in folder.notes if n.uuid != note_uuid]


class MirrorTransaction:
    """Оптимистичные изменения зеркала с точечным откатом

    Для каждой записи хранится ее состояние до первого изменения и номер
    ревизии после последнего. Если запись с тех пор изменил кто-то еще
    (например, пришел подтвержденный ответ сервера), откат ее не трогает.
    """

    def __init__(self, mirror: NotebookMirror):
        self.mirror = mirror
        self._notes: Dict[uuid.UUID, Tuple[Optional[NoteResponse], Optional[int]]] = {}
        self._folders: Dict[uuid.UUID, Tuple[Optional[FolderResponse], Optional[int]]] = {}
        self._selected_note_id = mirror.selected_note_id

    def upsert_note(self, note: NoteResponse) -> NoteResponse:
        before = self._note_before(note.uuid)
        stored = self.mirror.upsert_note(note)
        self._notes[note.uuid] = (before, self.mirror.revision(note.uuid))
        return stored

    def remove_note(self, note_uuid: uuid.UUID) -> Optional[NoteResponse]:
        before = self._note_before(note_uuid)
        removed = self.mirror.remove_note(note_uuid)
        self._notes[note_uuid] = (before, self.mirror.revision(note_uuid))
        return removed

    def upsert_folder(self, folder: FolderResponse) -> FolderResponse:
        if folder.uuid in self._folders:
            before = self._folders[folder.uuid][0]
        else:
            current = self.mirror.get_folder(folder.uuid)
            before = current.model_copy() if current is not None else None
        stored = self.mirror.upsert_folder(folder)
        self._folders[folder.uuid] = (before, self.mirror.revision(folder.uuid))
        return stored

    def rollback(self) -> None:
        restored = 0
        for note_uuid, (before, revision) in self._notes.items():
            if self.mirror.revision(note_uuid) != revision:
                continue
            if before is None:
                self.mirror.remove_note(note_uuid)
            else:
                self.mirror.upsert_note(before)
            restored += 1

        for folder_uuid, (before, revision) in self._folders.items():
            if self.mirror.revision(folder_uuid) != revision:
                continue
            if before is None:
                self.mirror.remove_folder(folder_uuid)
            else:
                self.mirror.upsert_folder(before)
            restored += 1

        if (
            self.mirror.selected_note_id is None
            and self._selected_note_id is not None
            and self.mirror.get_note(self._selected_note_id) is not None
        ):
            self.mirror.selected_note_id = self._selected_note_id

        logger.info(f"Mirror rolled back {restored} optimistic changes")

    def _note_before(self, note_uuid: uuid.UUID) -> Optional[NoteResponse]:
        if note_uuid in self._notes:
            return self._notes[note_uuid][0]
        return self.mirror.get_note(note_uuid)
