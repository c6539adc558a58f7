import json
import httpx
import pytest
import respx
from flowsmith.config import settings
from flowsmith.core.errors import (
    MalformedResponseError,
    NotFoundError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from flowsmith.integrations.langflow_client import LangflowClient

BUILDER_URL = "http://langflow.test"

@pytest.mark.asyncio
async def test_push_returns_flow_url(builder_api, langflow_client, sample_graph):
    route = builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(201, json={"id": "flow-1"}))

    result = await langflow_client.create_flow(sample_graph)

    assert result.flow_id == "flow-1"
    assert result.flow_url == f"{BUILDER_URL}/flow/flow-1"
    sent = json.loads(route.calls.last.request.content)
    assert sent["name"] == "Web Search Assistant"
    assert sent["is_component"] is False
    assert sent["webhook"] is False
    assert "folder_id" not in sent
    assert sent["data"]["edges"][0]["sourceHandle"] == sample_graph.edges[0].sourceHandle

@pytest.mark.asyncio
async def test_push_is_not_idempotent(builder_api, langflow_client, sample_graph):
    builder_api.post("/api/v1/flows/").mock(side_effect=[
        httpx.Response(201, json={"id": "flow-1"}),
        httpx.Response(201, json={"id": "flow-2"}),
    ])

    first = await langflow_client.create_flow(sample_graph)
    second = await langflow_client.create_flow(sample_graph)

    assert first.flow_id != second.flow_id

@pytest.mark.asyncio
async def test_push_into_folder_with_api_key(builder_api, http_client, sample_graph):
    route = builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(201, json={"id": "flow-1"}))
    client = LangflowClient(base_url=BUILDER_URL + "/", api_key="secret", client=http_client)

    await client.create_flow(sample_graph, folder_id="folder-9")

    request = route.calls.last.request
    assert request.headers["x-api-key"] == "secret"
    assert json.loads(request.content)["folder_id"] == "folder-9"

@pytest.mark.asyncio
async def test_pull_is_idempotent(builder_api, langflow_client, sample_graph):
    remote = {
        "id": "flow-1",
        "name": "Edited",
        "description": "changed in the builder",
        "data": sample_graph.data.model_dump(mode="json"),
        "updated_at": "2025-01-02T03:04:05",
    }
    builder_api.get("/api/v1/flows/flow-1").mock(return_value=httpx.Response(200, json=remote))

    first = await langflow_client.get_flow("flow-1")
    second = await langflow_client.get_flow("flow-1")

    assert first == second
    assert first.model_dump() == {
        "name": "Edited",
        "description": "changed in the builder",
        "data": remote["data"],
        "updated_at": "2025-01-02T03:04:05",
    }

@pytest.mark.asyncio
async def test_pull_missing_flow(builder_api, langflow_client):
    builder_api.get("/api/v1/flows/gone").mock(return_value=httpx.Response(404, json={"detail": "Flow not found"}))

    with pytest.raises(NotFoundError) as exc_info:
        await langflow_client.get_flow("gone")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Flow not found in Langflow"

@pytest.mark.asyncio
async def test_application_error_keeps_status_and_body(builder_api, langflow_client, sample_graph):
    builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(503, text="maintenance"))

    with pytest.raises(UpstreamError) as exc_info:
        await langflow_client.create_flow(sample_graph)
    error = exc_info.value
    assert type(error) is UpstreamError
    assert error.upstream_status == 503
    assert error.body == "maintenance"
    assert error.retryable

@pytest.mark.asyncio
async def test_client_error_not_retryable(builder_api, langflow_client, sample_graph):
    builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(422, json={"detail": "bad"}))

    with pytest.raises(UpstreamError) as exc_info:
        await langflow_client.create_flow(sample_graph)
    assert not exc_info.value.retryable

@pytest.mark.asyncio
async def test_connectivity_failure(builder_api, langflow_client):
    builder_api.get("/api/v1/flows/flow-1").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(UpstreamConnectionError) as exc_info:
        await langflow_client.get_flow("flow-1")
    assert exc_info.value.status_code == 503
    assert exc_info.value.retryable

@pytest.mark.asyncio
async def test_timeout(builder_api, langflow_client):
    builder_api.get("/api/v1/flows/flow-1").mock(side_effect=httpx.ReadTimeout("slow"))

    with pytest.raises(UpstreamTimeoutError):
        await langflow_client.get_flow("flow-1")

@pytest.mark.asyncio
async def test_malformed_success_body(builder_api, langflow_client, sample_graph):
    builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(200, text="<html>ok</html>"))
    builder_api.get("/api/v1/flows/flow-1").mock(return_value=httpx.Response(200, json={"name": "x", "data": "nope"}))

    with pytest.raises(MalformedResponseError) as push_error:
        await langflow_client.create_flow(sample_graph)
    assert not push_error.value.retryable

    with pytest.raises(MalformedResponseError):
        await langflow_client.get_flow("flow-1")

@pytest.mark.asyncio
async def test_folder_falls_back_on_method_not_allowed(builder_api, langflow_client):
    folders = builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(405))
    projects = builder_api.post("/api/v1/projects/").mock(return_value=httpx.Response(201, json={"id": "folder-1"}))

    assert await langflow_client.create_folder("alice", "Workspace for alice") == "folder-1"
    assert folders.call_count == 1
    assert json.loads(projects.calls.last.request.content) == {
        "name": "alice",
        "description": "Workspace for alice",
        "components_list": [],
        "flows_list": [],
    }

@pytest.mark.asyncio
async def test_folder_other_errors_do_not_fall_back(builder_api, langflow_client):
    builder_api.post("/api/v1/folders/").mock(return_value=httpx.Response(500))
    projects = builder_api.post("/api/v1/projects/").mock(return_value=httpx.Response(201, json={"id": "folder-1"}))

    with pytest.raises(UpstreamError):
        await langflow_client.create_folder("alice", "Workspace for alice")
    assert projects.call_count == 0

@pytest.mark.asyncio
@pytest.mark.parametrize("flow_id", ["../variables/", "flow-1/../../variables", "a b", ""])
async def test_flow_id_cannot_leave_flows_path(builder_api, langflow_client, flow_id):
    with pytest.raises(NotFoundError):
        await langflow_client.get_flow(flow_id)
    assert len(builder_api.calls) == 0

@pytest.mark.asyncio
async def test_malformed_pull_does_not_echo_remote_body(builder_api, langflow_client):
    builder_api.get("/api/v1/flows/flow-1").mock(
        return_value=httpx.Response(200, json={"OPENAI_API_KEY": "sk-secret", "data": "nope"})
    )

    with pytest.raises(MalformedResponseError) as exc_info:
        await langflow_client.get_flow("flow-1")
    assert "sk-secret" not in json.dumps(exc_info.value.to_body())

@pytest.mark.asyncio
async def test_push_rejects_unusable_remote_id(builder_api, langflow_client, sample_graph):
    builder_api.post("/api/v1/flows/").mock(return_value=httpx.Response(201, json={"id": "../escape"}))

    with pytest.raises(MalformedResponseError):
        await langflow_client.create_flow(sample_graph)

@pytest.mark.asyncio
async def test_alternate_builder_gets_only_its_own_key(http_client, sample_graph, monkeypatch):
    monkeypatch.setattr(settings, "BUILDER_API_KEYS", {"http://staging.test": "staging-key"})
    primary = LangflowClient(base_url=BUILDER_URL, api_key="primary-key", client=http_client)

    with respx.mock(assert_all_called=False) as mock:
        staging = mock.post("http://staging.test/api/v1/flows/").mock(return_value=httpx.Response(201, json={"id": "s1"}))
        other = mock.post("http://other.test/api/v1/flows/").mock(return_value=httpx.Response(201, json={"id": "o1"}))

        await primary.with_base_url("http://staging.test/").create_flow(sample_graph)
        await primary.with_base_url("http://other.test").create_flow(sample_graph)

    assert staging.calls.last.request.headers["x-api-key"] == "staging-key"
    assert "x-api-key" not in other.calls.last.request.headers
    assert primary.with_base_url(BUILDER_URL + "/") is primary
