import re
import httpx
from typing import Optional, Dict, Any
from pydantic import BaseModel, ValidationError
from flowsmith.config import settings
from flowsmith.core.errors import (
    MalformedResponseError,
    NotFoundError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from flowsmith.core.logging import logger, log_fields
from flowsmith.integrations.http_client import HttpClient
from flowsmith.schemas.flow import FLOW_ID_PATTERN, FlowData, FlowGraph

FLOWS_PATH = "/api/v1/flows/"
FOLDERS_PATH = "/api/v1/folders/"
# Newer builder releases renamed folders to projects and answer 405 on the old path.
PROJECTS_PATH = "/api/v1/projects/"
FLOW_ID_RE = re.compile(FLOW_ID_PATTERN)

class PushResult(BaseModel):
    flow_id: str
    flow_url: str

class PulledFlow(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    data: Dict[str, Any]
    updated_at: Optional[str] = None

class LangflowClient:
    """
    Thin client for the builder's REST API.

    Failures come back as three distinct kinds: UpstreamConnectionError /
    UpstreamTimeoutError (no response), UpstreamError (non-2xx, carries status
    and body) and MalformedResponseError (2xx with an unusable body).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.LANGFLOW_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BUILDER_TIMEOUT
        self.headers = {"accept": "application/json"}
        api_key = api_key if api_key is not None else settings.LANGFLOW_API_KEY
        if api_key:
            self.headers["x-api-key"] = api_key
        self._client = client

    def with_base_url(self, base_url: str) -> "LangflowClient":
        """Client for another builder. Its key comes from BUILDER_API_KEYS; this client's key never travels."""
        base_url = base_url.rstrip("/")
        if base_url == self.base_url:
            return self
        api_key = settings.BUILDER_API_KEYS.get(base_url, "")
        return LangflowClient(base_url, api_key=api_key, timeout=self.timeout, client=self._client)

    def flow_url(self, flow_id: str) -> str:
        return f"{self.base_url}/flow/{flow_id}"

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        client = self._client or await HttpClient.get_client()
        url = f"{self.base_url}{path}"
        logger.info(f"Builder request: {method} {path}", extra=log_fields(builder=self.base_url))
        try:
            response = await client.request(method, url, json=json, headers=self.headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            logger.error(f"Builder request timed out: {method} {path}", extra=log_fields(failure="timeout"))
            raise UpstreamTimeoutError(f"Builder did not answer within {self.timeout}s") from e
        except httpx.RequestError as e:
            logger.error(f"Builder unreachable: {e}", extra=log_fields(failure="connection"))
            raise UpstreamConnectionError(f"Could not reach builder at {self.base_url}: {e}") from e

        if response.is_error:
            logger.error(
                f"Builder API error: {response.status_code}",
                extra=log_fields(failure="status", status=response.status_code, path=path),
            )
            raise UpstreamError(f"Langflow API error: {response.status_code}", upstream_status=response.status_code, body=response.text)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError("Builder returned a body that is not JSON", body=response.text) from e
        if not isinstance(body, dict):
            raise MalformedResponseError("Builder returned an unexpected JSON shape", body=body)
        return body

    async def create_flow(self, graph: FlowGraph, folder_id: Optional[str] = None) -> PushResult:
        """Creates a new remote flow on every call, even for an identical graph."""
        payload: Dict[str, Any] = {
            "name": graph.name or "Imported Workflow",
            "description": graph.description or "Imported from Flowsmith",
            "data": graph.data.model_dump(mode="json"),
            "is_component": False,
            "webhook": False,
        }
        if folder_id:
            payload["folder_id"] = folder_id

        body = self._json(await self._request("POST", FLOWS_PATH, json=payload))
        flow_id = body.get("id")
        if not flow_id or not FLOW_ID_RE.match(str(flow_id)):
            raise MalformedResponseError("Builder response has no usable flow id", body=body)
        logger.info(f"Created builder flow {flow_id}", extra=log_fields(flow_id=flow_id, folder_id=folder_id))
        return PushResult(flow_id=str(flow_id), flow_url=self.flow_url(str(flow_id)))

    async def get_flow(self, flow_id: str) -> PulledFlow:
        if not FLOW_ID_RE.match(flow_id or ""):
            raise NotFoundError("Flow not found in Langflow", details={"flow_id": flow_id})
        try:
            response = await self._request("GET", f"{FLOWS_PATH.rstrip('/')}/{flow_id}")
        except UpstreamError as e:
            if e.upstream_status == 404:
                raise NotFoundError("Flow not found in Langflow", details={"flow_id": flow_id}) from e
            raise

        body = self._json(response)
        try:
            FlowData.model_validate(body.get("data"))
            return PulledFlow.model_validate({
                "name": body.get("name"),
                "description": body.get("description"),
                "data": body.get("data"),
                "updated_at": body.get("updated_at"),
            })
        except ValidationError as e:
            raise MalformedResponseError(f"Builder flow {flow_id} has an invalid graph") from e

    async def create_folder(self, name: str, description: str) -> str:
        payload = {"name": name, "description": description, "components_list": [], "flows_list": []}
        try:
            response = await self._request("POST", FOLDERS_PATH, json=payload)
        except UpstreamError as e:
            if e.upstream_status != 405:
                raise
            logger.info("Folders endpoint not allowed, retrying on projects endpoint")
            response = await self._request("POST", PROJECTS_PATH, json=payload)

        body = self._json(response)
        folder_id = body.get("id")
        if not folder_id:
            raise MalformedResponseError("Builder response has no folder id", body=body)
        return str(folder_id)
