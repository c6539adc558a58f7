from dataclasses import dataclass
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from flowsmith.core.errors import FlowsmithError, NotFoundError
from flowsmith.core.logging import logger, log_fields
from flowsmith.integrations.langflow_client import LangflowClient, PushResult
from flowsmith.models.workflow import SavedWorkflow
from flowsmith.schemas.flow import FlowGraph
from flowsmith.schemas.workflow import WorkflowCreate, WorkflowUpdate
from flowsmith.services.sequencer import RequestSequencer, sync_sequencer
from flowsmith.services.workflow_service import WorkflowService

@dataclass
class SaveAndPushOutcome:
    workflow: SavedWorkflow
    push: Optional[PushResult] = None
    error: Optional[FlowsmithError] = None

class SyncService:
    """
    Moves saved workflows to and from the builder.

    The builder client never touches the database; this service persists what
    it returns. Push and pull share only the per-record sequencer, so a
    response older than the last one applied to the record is dropped.
    """

    def __init__(self, client: LangflowClient, sequencer: Optional[RequestSequencer] = None):
        self.client = client
        self.sequencer = sequencer or sync_sequencer

    async def _get(self, db: AsyncSession, user_id: str, workflow_id: str) -> SavedWorkflow:
        workflow = await WorkflowService.get_by_id(db, user_id, workflow_id)
        if not workflow:
            raise NotFoundError("Workflow not found", details={"workflow_id": workflow_id})
        return workflow

    async def push_workflow(
        self,
        db: AsyncSession,
        user_id: str,
        workflow_id: str,
        folder_id: Optional[str] = None,
    ) -> Tuple[SavedWorkflow, PushResult]:
        workflow = await self._get(db, user_id, workflow_id)
        graph = FlowGraph.model_validate(workflow.workflow_json)

        seq = await self.sequencer.issue(workflow_id)
        result = await self.client.create_flow(graph, folder_id)

        if await self.sequencer.try_apply(workflow_id, seq):
            await WorkflowService.update(db, user_id, workflow_id, WorkflowUpdate(langflow_flow_id=result.flow_id))
        return workflow, result

    async def pull_workflow(self, db: AsyncSession, user_id: str, workflow_id: str) -> Tuple[SavedWorkflow, bool]:
        workflow = await self._get(db, user_id, workflow_id)
        if not workflow.langflow_flow_id:
            raise NotFoundError("Workflow has not been pushed to the builder", details={"workflow_id": workflow_id})

        seq = await self.sequencer.issue(workflow_id)
        pulled = await self.client.get_flow(workflow.langflow_flow_id)

        if not await self.sequencer.try_apply(workflow_id, seq):
            return workflow, False

        envelope = dict(workflow.workflow_json)
        envelope["data"] = pulled.data
        if pulled.name:
            envelope["name"] = pulled.name
        if pulled.description is not None:
            envelope["description"] = pulled.description

        patch = WorkflowUpdate(workflow_json=FlowGraph.model_validate(envelope))
        if pulled.name:
            patch.name = pulled.name
        if pulled.description is not None:
            patch.description = pulled.description
        await WorkflowService.update(db, user_id, workflow_id, patch)
        logger.info(
            f"Pulled builder flow {workflow.langflow_flow_id}",
            extra=log_fields(workflow_id=workflow_id, remote_updated_at=pulled.updated_at),
        )
        return workflow, True

    async def save_and_push(
        self,
        db: AsyncSession,
        user_id: str,
        workflow_in: WorkflowCreate,
        folder_id: Optional[str] = None,
    ) -> SaveAndPushOutcome:
        """
        Create the record, commit it, then push. A failed push leaves the
        record in place and is reported on the outcome instead of raised.
        """
        workflow = await WorkflowService.create(db, user_id, workflow_in)
        await db.commit()

        try:
            workflow, result = await self.push_workflow(db, user_id, workflow.id, folder_id)
        except FlowsmithError as e:
            logger.warning(
                f"Saved workflow {workflow.id} but push failed: {e.message}",
                extra=log_fields(workflow_id=workflow.id, status=e.status_code, retryable=e.retryable),
            )
            return SaveAndPushOutcome(workflow=workflow, error=e)
        return SaveAndPushOutcome(workflow=workflow, push=result)
