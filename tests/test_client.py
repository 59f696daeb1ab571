"""Тесты HTTP-клиента с зеркалом против настоящего приложения."""
import asyncio
import json
import uuid
from datetime import datetime

import httpx
import pytest

from app.client.api_client import NotebookClient
from app.core.errors import InvalidInput, InvalidReference, NotFound, Unauthenticated
from app.domains.notebook.schemas import NoteResponse


@pytest.fixture
def notebook(client_a):
    return NotebookClient(client_a)


@pytest.fixture
def other_notebook(client_b):
    return NotebookClient(client_b)


async def test_refresh_loads_server_state(notebook):
    folder = await notebook.create_folder("Work")
    await notebook.create_note("Plan", content="text", folder_id=folder.uuid)
    await notebook.create_note("Loose")

    fresh = NotebookClient(notebook.http)
    mirror = await fresh.refresh()

    assert [f.name for f in mirror.folders] == ["Work"]
    assert [n.title for n in mirror.notes_in(folder.uuid)] == ["Plan"]
    assert [n.title for n in mirror.unfiled_notes] == ["Loose"]


async def test_mutations_patch_mirror_without_refetch(notebook):
    folder = await notebook.create_folder("Work")
    note = await notebook.create_note("Plan", folder_id=folder.uuid)

    updated = await notebook.update_note(note.uuid, title="Plan v2")

    assert notebook.mirror.get_note(note.uuid) == updated
    assert notebook.mirror.get_note(note.uuid).title == "Plan v2"
    assert len(notebook.mirror.notes) == 1
    assert [n.title for n in notebook.mirror.notes_in(folder.uuid)] == ["Plan v2"]


async def test_failed_update_rolls_mirror_back(notebook, other_notebook):
    work = await notebook.create_folder("Work")
    note = await notebook.create_note("Plan", folder_id=work.uuid)
    foreign = await other_notebook.create_folder("Theirs")

    with pytest.raises(InvalidReference):
        await notebook.update_note(note.uuid, folder_id=foreign.uuid)

    mirrored = notebook.mirror.get_note(note.uuid)
    assert mirrored.folder_id == work.uuid
    assert mirrored == note
    assert mirrored.updated_at == note.updated_at


async def test_failed_rename_rolls_mirror_back(notebook):
    folder = await notebook.create_folder("Work")

    with pytest.raises(InvalidInput):
        await notebook.rename_folder(folder.uuid, "   ")

    assert notebook.mirror.get_folder(folder.uuid).name == "Work"


async def test_delete_folder_detach_updates_mirror(notebook):
    folder = await notebook.create_folder("F")
    first = await notebook.create_note("One", folder_id=folder.uuid)
    second = await notebook.create_note("Two", folder_id=folder.uuid)
    notebook.mirror.select_note(first.uuid)

    deletion = await notebook.delete_folder(folder.uuid)

    assert set(deletion.affected_note_ids) == {first.uuid, second.uuid}
    assert notebook.mirror.get_folder(folder.uuid) is None
    assert {n.uuid for n in notebook.mirror.unfiled_notes} == {first.uuid, second.uuid}
    assert notebook.mirror.selected_note_id == first.uuid


async def test_delete_folder_cascade_updates_mirror(notebook):
    folder = await notebook.create_folder("F")
    doomed = await notebook.create_note("Doomed", folder_id=folder.uuid)
    notebook.mirror.select_note(doomed.uuid)

    await notebook.delete_folder(folder.uuid, cascade_notes=True)

    assert notebook.mirror.notes == []
    assert notebook.mirror.selected_note_id is None


async def test_delete_note_updates_mirror(notebook):
    note = await notebook.create_note("Gone")

    await notebook.delete_note(note.uuid)

    assert notebook.mirror.get_note(note.uuid) is None
    with pytest.raises(NotFound):
        await notebook.delete_note(note.uuid)


async def test_summarize_note_writes_back_through_update(notebook):
    note = await notebook.create_note("Long", content="First. Second. Third. Fourth. Fifth.")

    summarized = await notebook.summarize_note(note.uuid)

    assert summarized.content == "First. Second."
    assert summarized.updated_at > note.updated_at
    assert notebook.mirror.get_note(note.uuid).content == "First. Second."


async def test_unauthenticated_client_raises_typed_error(http_client):
    client = NotebookClient(http_client)

    with pytest.raises(Unauthenticated):
        await client.refresh()


async def test_unknown_note_is_not_found(notebook):
    with pytest.raises(NotFound):
        await notebook.update_note(uuid.uuid4(), title="x")


async def test_failed_update_keeps_update_confirmed_meanwhile():
    first = NoteResponse(
        uuid=uuid.uuid4(), title="One", content="", folder_id=None, owner_id="u1",
        created_at=datetime(2026, 1, 1), updated_at=datetime(2026, 1, 1),
    )
    second = first.model_copy(update={"uuid": uuid.uuid4(), "title": "Two"})
    first_confirmed = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == f"/notes/{second.uuid}":
            await first_confirmed.wait()
            return httpx.Response(400, json={"error": {
                "code": "invalid_reference", "message": "Folder not found", "details": {}
            }})
        changes = json.loads(request.content)
        saved = first.model_copy(update={**changes, "updated_at": datetime(2026, 1, 2)})
        return httpx.Response(200, json=saved.model_dump(mode="json"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as http:
        notebook = NotebookClient(http)
        notebook.mirror.load([], [first, second])

        async def confirm_first():
            note = await notebook.update_note(first.uuid, title="Confirmed")
            first_confirmed.set()
            return note

        rejected, confirmed = await asyncio.gather(
            notebook.update_note(second.uuid, folder_id=uuid.uuid4()),
            confirm_first(),
            return_exceptions=True,
        )

    assert isinstance(rejected, InvalidReference)
    assert confirmed.title == "Confirmed"
    assert notebook.mirror.get_note(first.uuid).title == "Confirmed"
    assert notebook.mirror.get_note(second.uuid) == second
