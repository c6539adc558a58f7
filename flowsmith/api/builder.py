from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from flowsmith.api.deps import get_langflow_client
from flowsmith.config import settings
from flowsmith.core.errors import AuthorizationError
from flowsmith.core.security import CurrentUser, ensure_same_user, get_current_user
from flowsmith.database import get_db
from flowsmith.integrations.langflow_client import LangflowClient
from flowsmith.schemas.builder import (
    FolderProvisionRequest,
    FolderProvisionResponse,
    ImportRequest,
    ImportResponse,
    SyncRequest,
    SyncResponse,
)
from flowsmith.services.folder_service import FolderService

router = APIRouter()

def allowed_builder_urls() -> set:
    return {url.rstrip("/") for url in [settings.LANGFLOW_URL, *settings.ALLOWED_BUILDER_URLS]}

@router.post("/import", response_model=ImportResponse)
async def import_to_builder(
    request: ImportRequest,
    current_user: CurrentUser = Depends(get_current_user),
    client: LangflowClient = Depends(get_langflow_client),
):
    base_url = request.builderBaseUrl.rstrip("/")
    if base_url not in allowed_builder_urls():
        raise AuthorizationError("Builder URL is not allowed", details={"builderBaseUrl": request.builderBaseUrl})

    client = client.with_base_url(base_url)
    result = await client.create_flow(request.workflow, request.folderId)
    return ImportResponse(flowId=result.flow_id, flowUrl=result.flow_url)

@router.post("/sync", response_model=SyncResponse)
async def sync_from_builder(
    request: SyncRequest,
    current_user: CurrentUser = Depends(get_current_user),
    client: LangflowClient = Depends(get_langflow_client),
):
    pulled = await client.get_flow(request.flowId)
    return SyncResponse(workflow=pulled.model_dump())

@router.post("/folders", response_model=FolderProvisionResponse)
async def provision_folder(
    request: FolderProvisionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    client: LangflowClient = Depends(get_langflow_client),
    db: AsyncSession = Depends(get_db),
):
    ensure_same_user(current_user, request.userId)
    provision = await FolderService.ensure_folder(
        db, client, request.userId, request.username or current_user.username
    )
    return FolderProvisionResponse(
        success=provision.folder_id is not None,
        folderId=provision.folder_id,
        isNew=provision.is_new,
    )
