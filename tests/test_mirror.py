"""Тесты клиентского зеркала."""
import uuid
from datetime import datetime, timedelta

import pytest

from app.client.mirror import NotebookMirror
from app.domains.notebook.schemas import FolderDeletionResponse, FolderResponse, NoteResponse

BASE = datetime(2026, 1, 1, 12, 0, 0)


def make_folder(name="Work", minutes=0):
    return FolderResponse(
        uuid=uuid.uuid4(),
        name=name,
        owner_id="u1",
        created_at=BASE,
        updated_at=BASE + timedelta(minutes=minutes),
    )


def make_note(title="Note", folder_id=None, minutes=0, content=""):
    return NoteResponse(
        uuid=uuid.uuid4(),
        title=title,
        content=content,
        folder_id=folder_id,
        owner_id="u1",
        created_at=BASE,
        updated_at=BASE + timedelta(minutes=minutes),
    )


@pytest.fixture
def mirror():
    return NotebookMirror()


def test_load_builds_folder_note_lists(mirror):
    work = make_folder("Work")
    home = make_folder("Home")
    old = make_note("Old", folder_id=work.uuid, minutes=1)
    new = make_note("New", folder_id=work.uuid, minutes=5)
    loose = make_note("Loose", minutes=3)

    mirror.load([work, home], [old, new, loose])

    assert [f.name for f in mirror.folders] == ["Home", "Work"]
    assert [n.title for n in mirror.notes] == ["New", "Loose", "Old"]
    assert [n.title for n in mirror.notes_in(work.uuid)] == ["New", "Old"]
    assert mirror.notes_in(home.uuid) == []
    assert [n.title for n in mirror.unfiled_notes] == ["Loose"]


def test_upsert_note_replaces_by_uuid_without_duplicates(mirror):
    folder = make_folder()
    note = make_note("Draft", folder_id=folder.uuid)
    mirror.load([folder], [note])

    # Повтор того же ответа (ретрай) не создает дубликат
    mirror.upsert_note(note)
    edited = note.model_copy(update={"title": "Final", "updated_at": note.updated_at + timedelta(minutes=1)})
    mirror.upsert_note(edited)

    assert len(mirror.notes) == 1
    assert mirror.get_note(note.uuid).title == "Final"
    assert [n.title for n in mirror.notes_in(folder.uuid)] == ["Final"]


def test_upsert_note_moves_between_folders(mirror):
    work = make_folder("Work")
    home = make_folder("Home")
    note = make_note("Plan", folder_id=work.uuid)
    mirror.load([work, home], [note])

    mirror.upsert_note(note.model_copy(update={"folder_id": home.uuid}))

    assert mirror.notes_in(work.uuid) == []
    assert [n.uuid for n in mirror.notes_in(home.uuid)] == [note.uuid]

    mirror.upsert_note(note.model_copy(update={"folder_id": None}))
    assert mirror.notes_in(home.uuid) == []
    assert [n.uuid for n in mirror.unfiled_notes] == [note.uuid]


def test_upsert_folder_keeps_embedded_notes(mirror):
    folder = make_folder("Work")
    note = make_note("Plan", folder_id=folder.uuid)
    mirror.load([folder], [note])

    mirror.upsert_folder(folder.model_copy(update={"name": "Projects"}))

    assert mirror.get_folder(folder.uuid).name == "Projects"
    assert [n.uuid for n in mirror.notes_in(folder.uuid)] == [note.uuid]


def test_remove_note_clears_folder_list_and_selection(mirror):
    folder = make_folder()
    note = make_note("Plan", folder_id=folder.uuid)
    other = make_note("Other")
    mirror.load([folder], [note, other])
    mirror.select_note(note.uuid)

    mirror.remove_note(note.uuid)

    assert mirror.get_note(note.uuid) is None
    assert mirror.notes_in(folder.uuid) == []
    assert mirror.selected_note_id is None


def test_remove_other_note_keeps_selection(mirror):
    selected = make_note("Selected")
    other = make_note("Other")
    mirror.load([], [selected, other])
    mirror.select_note(selected.uuid)

    mirror.remove_note(other.uuid)

    assert mirror.selected_note is selected


def test_select_unknown_note_raises(mirror):
    with pytest.raises(KeyError):
        mirror.select_note(uuid.uuid4())


def test_apply_detach_deletion_uses_server_state(mirror):
    folder = make_folder()
    first = make_note("One", folder_id=folder.uuid)
    second = make_note("Two", folder_id=folder.uuid)
    mirror.load([folder], [first, second])

    detached = [
        n.model_copy(update={"folder_id": None, "updated_at": BASE + timedelta(hours=1)})
        for n in (first, second)
    ]
    mirror.apply_folder_deletion(FolderDeletionResponse(
        folder=folder,
        cascade_notes=False,
        affected_note_ids=[first.uuid, second.uuid],
        detached_notes=detached,
    ))

    assert mirror.get_folder(folder.uuid) is None
    assert {n.uuid for n in mirror.unfiled_notes} == {first.uuid, second.uuid}
    assert all(n.updated_at == BASE + timedelta(hours=1) for n in mirror.notes)


def test_apply_cascade_deletion_removes_notes(mirror):
    folder = make_folder()
    doomed = make_note("Doomed", folder_id=folder.uuid)
    kept = make_note("Kept")
    mirror.load([folder], [doomed, kept])
    mirror.select_note(doomed.uuid)

    mirror.apply_folder_deletion(FolderDeletionResponse(
        folder=folder,
        cascade_notes=True,
        affected_note_ids=[doomed.uuid],
        detached_notes=[],
    ))

    assert [n.uuid for n in mirror.notes] == [kept.uuid]
    assert mirror.selected_note_id is None


def test_deletion_keeps_unreported_notes_for_refresh(mirror):
    folder = make_folder()
    reported = make_note("Reported", folder_id=folder.uuid)
    unreported = make_note("Unreported", folder_id=folder.uuid)
    mirror.load([folder], [reported, unreported])

    mirror.apply_folder_deletion(FolderDeletionResponse(
        folder=folder,
        cascade_notes=True,
        affected_note_ids=[reported.uuid],
        detached_notes=[],
    ))

    assert mirror.get_note(reported.uuid) is None
    assert mirror.get_note(unreported.uuid) is unreported


def test_transaction_rolls_back_on_error(mirror):
    folder = make_folder("Work")
    note = make_note("Plan", folder_id=folder.uuid)
    mirror.load([folder], [note])
    mirror.select_note(note.uuid)

    with pytest.raises(RuntimeError):
        with mirror.transaction() as tx:
            tx.upsert_note(note.model_copy(update={"title": "Optimistic", "folder_id": None}))
            tx.remove_note(note.uuid)
            raise RuntimeError("server said no")

    restored = mirror.get_note(note.uuid)
    assert restored.title == "Plan"
    assert restored.folder_id == folder.uuid
    assert [n.uuid for n in mirror.notes_in(folder.uuid)] == [note.uuid]
    assert mirror.selected_note_id == note.uuid


def test_transaction_rollback_removes_optimistic_insert(mirror):
    folder = make_folder("Work")
    mirror.load([folder], [])
    draft = make_note("Draft", folder_id=folder.uuid)

    with pytest.raises(RuntimeError):
        with mirror.transaction() as tx:
            tx.upsert_note(draft)
            tx.upsert_folder(folder.model_copy(update={"name": "Renamed"}))
            raise RuntimeError("server said no")

    assert mirror.get_note(draft.uuid) is None
    assert mirror.notes_in(folder.uuid) == []
    assert mirror.get_folder(folder.uuid).name == "Work"


def test_transaction_rollback_keeps_changes_confirmed_meanwhile(mirror):
    first = make_note("One")
    second = make_note("Two")
    mirror.load([], [first, second])

    with pytest.raises(RuntimeError):
        with mirror.transaction() as failing:
            failing.upsert_note(second.model_copy(update={"title": "Rejected"}))

            # Пока запрос в полете, другая операция получила ответ сервера
            with mirror.transaction() as confirmed:
                confirmed.upsert_note(first.model_copy(update={"title": "Optimistic"}))
            mirror.upsert_note(first.model_copy(update={"title": "Confirmed"}))

            raise RuntimeError("server said no")

    assert mirror.get_note(first.uuid).title == "Confirmed"
    assert mirror.get_note(second.uuid).title == "Two"


def test_transaction_rollback_skips_entity_updated_by_server(mirror):
    note = make_note("Plan")
    mirror.load([], [note])

    with pytest.raises(RuntimeError):
        with mirror.transaction() as tx:
            tx.upsert_note(note.model_copy(update={"title": "Optimistic"}))
            mirror.upsert_note(note.model_copy(update={"title": "From server"}))
            raise RuntimeError("server said no")

    assert mirror.get_note(note.uuid).title == "From server"


def test_transaction_keeps_changes_on_success(mirror):
    note = make_note("Plan")
    mirror.load([], [note])

    with mirror.transaction() as tx:
        tx.upsert_note(note.model_copy(update={"title": "Saved"}))

    assert mirror.get_note(note.uuid).title == "Saved"
