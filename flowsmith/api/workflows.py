from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from flowsmith.api.deps import get_sync_service
from flowsmith.core.errors import NotFoundError
from flowsmith.core.security import CurrentUser, get_current_user
from flowsmith.database import get_db
from flowsmith.services.sync_service import SyncService
from flowsmith.services.workflow_service import WorkflowService
from flowsmith.services.validation_service import ValidationService
from flowsmith.schemas.workflow import (
    PushOutcome,
    SaveAndPushRequest,
    SaveAndPushResponse,
    SyncOutcome,
    ValidationReport,
    WorkflowCreate,
    WorkflowInDB,
    WorkflowSummary,
    WorkflowUpdate,
)
from typing import List, Optional

router = APIRouter()

def _not_found(workflow_id: str) -> NotFoundError:
    return NotFoundError("Workflow not found", details={"workflow_id": workflow_id})

@router.get("/", response_model=List[WorkflowSummary])
async def get_workflows(
    skip: int = 0,
    limit: int = 100,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await WorkflowService.get_all(db, current_user.id, skip=skip, limit=limit)

@router.post("/", response_model=WorkflowInDB, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    workflow_in: WorkflowCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await WorkflowService.create(db, current_user.id, workflow_in)

@router.post("/save-and-push", response_model=SaveAndPushResponse)
async def save_and_push_workflow(
    request: SaveAndPushRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sync: SyncService = Depends(get_sync_service),
):
    workflow_in = WorkflowCreate(
        name=request.name,
        description=request.description,
        workflow_json=request.workflow_json,
        explanation=request.explanation,
    )
    outcome = await sync.save_and_push(db, current_user.id, workflow_in, request.folderId)
    return SaveAndPushResponse(
        workflow=WorkflowInDB.model_validate(outcome.workflow),
        push=PushOutcome(flowId=outcome.push.flow_id, flowUrl=outcome.push.flow_url) if outcome.push else None,
        error=outcome.error.to_body() if outcome.error else None,
    )

@router.get("/{workflow_id}", response_model=WorkflowInDB)
async def get_workflow(
    workflow_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    workflow = await WorkflowService.get_by_id(db, current_user.id, workflow_id)
    if not workflow:
        raise _not_found(workflow_id)
    return workflow

@router.patch("/{workflow_id}", response_model=WorkflowInDB)
async def update_workflow(
    workflow_id: str,
    workflow_in: WorkflowUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await WorkflowService.update(db, current_user.id, workflow_id, workflow_in):
        raise _not_found(workflow_id)
    return await WorkflowService.get_by_id(db, current_user.id, workflow_id)

@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sync: SyncService = Depends(get_sync_service),
):
    success = await WorkflowService.delete(db, current_user.id, workflow_id)
    if not success:
        raise _not_found(workflow_id)
    await sync.sequencer.forget(workflow_id)

@router.post("/{workflow_id}/validate", response_model=ValidationReport)
async def validate_workflow(
    workflow_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    workflow = await WorkflowService.get_by_id(db, current_user.id, workflow_id)
    if not workflow:
        raise _not_found(workflow_id)

    result = ValidationService.validate_graph(workflow.workflow_json)
    return {"valid": result.is_valid, "errors": [e.model_dump() for e in result.errors]}

@router.post("/{workflow_id}/push", response_model=PushOutcome)
async def push_workflow(
    workflow_id: str,
    folderId: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sync: SyncService = Depends(get_sync_service),
):
    _, result = await sync.push_workflow(db, current_user.id, workflow_id, folderId)
    return PushOutcome(flowId=result.flow_id, flowUrl=result.flow_url)

@router.post("/{workflow_id}/pull", response_model=SyncOutcome)
async def pull_workflow(
    workflow_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sync: SyncService = Depends(get_sync_service),
):
    workflow, applied = await sync.pull_workflow(db, current_user.id, workflow_id)
    return SyncOutcome(workflow=WorkflowInDB.model_validate(workflow), applied=applied)
