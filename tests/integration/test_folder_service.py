import json
import httpx
import pytest
from flowsmith.models.profile import Profile
from flowsmith.services.folder_service import FolderService

@pytest.mark.parametrize("user_id,username,expected", [
    ("0123456789abcdef", "alice", "alice"),
    ("0123456789abcdef", None, "user-01234567"),
    ("abc", "", "user-abc"),
])
def test_folder_name(user_id, username, expected):
    assert FolderService.folder_name(user_id, username) == expected

@pytest.mark.asyncio
async def test_existing_folder_needs_no_remote_call(db_session, builder_api, langflow_client):
    db_session.add(Profile(user_id="user-1", username="alice", langflow_folder_id="folder-1"))
    await db_session.flush()
    folders = builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(201, json={"id": "other"}))

    first = await FolderService.provision(db_session, langflow_client, "user-1", "alice")
    second = await FolderService.provision(db_session, langflow_client, "user-1", "alice")

    assert first == second == "folder-1"
    assert folders.call_count == 0

@pytest.mark.asyncio
async def test_first_use_creates_and_stores_folder(db_session, builder_api, langflow_client):
    folders = builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(201, json={"id": "folder-new"}))

    provision = await FolderService.ensure_folder(db_session, langflow_client, "0123456789abcdef")

    assert provision.folder_id == "folder-new"
    assert provision.is_new
    assert json.loads(folders.calls.last.request.content)["name"] == "user-01234567"
    profile = await FolderService.get_profile(db_session, "0123456789abcdef")
    assert profile.langflow_folder_id == "folder-new"

    again = await FolderService.ensure_folder(db_session, langflow_client, "0123456789abcdef")
    assert again.folder_id == "folder-new"
    assert not again.is_new
    assert folders.call_count == 1

@pytest.mark.asyncio
async def test_existing_profile_without_folder_is_updated(db_session, builder_api, langflow_client):
    db_session.add(Profile(user_id="user-1", username=None))
    await db_session.flush()
    builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(201, json={"id": "folder-2"}))

    provision = await FolderService.ensure_folder(db_session, langflow_client, "user-1", "alice")

    assert provision.folder_id == "folder-2"
    profile = await FolderService.get_profile(db_session, "user-1")
    assert profile.langflow_folder_id == "folder-2"
    assert profile.username == "alice"

@pytest.mark.asyncio
async def test_remote_failure_degrades_to_no_folder(db_session, builder_api, langflow_client):
    builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(500, text="boom"))
    projects = builder_api.post("/api/v1/projects/").mock(return_value=httpx.Response(201, json={"id": "x"}))

    provision = await FolderService.ensure_folder(db_session, langflow_client, "user-1", "alice")

    assert provision.folder_id is None
    assert not provision.is_new
    assert projects.call_count == 0
    assert await FolderService.get_profile(db_session, "user-1") is None

@pytest.mark.asyncio
async def test_concurrent_provision_keeps_stored_folder(db_session, langflow_client, monkeypatch):
    async def racing_create_folder(name, description):
        # Another request finishes provisioning while this one waits on the builder.
        db_session.add(Profile(user_id="user-1", username="alice", langflow_folder_id="folder-first"))
        await db_session.flush()
        return "folder-second"

    monkeypatch.setattr(langflow_client, "create_folder", racing_create_folder)

    provision = await FolderService.ensure_folder(db_session, langflow_client, "user-1", "alice")

    assert provision.folder_id == "folder-first"
    assert not provision.is_new
    profile = await FolderService.get_profile(db_session, "user-1")
    assert profile.langflow_folder_id == "folder-first"
