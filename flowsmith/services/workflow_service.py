from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, desc
from flowsmith.models.workflow import SavedWorkflow, utcnow
from flowsmith.schemas.workflow import WorkflowCreate, WorkflowUpdate
from typing import List, Optional
import uuid

NOT_NULL_FIELDS = {"name", "workflow_json"}

class WorkflowService:
    """
    Owner-scoped CRUD over saved workflows. Every query filters on user_id, so a
    record owned by someone else behaves exactly like a missing one.
    """

    @staticmethod
    async def get_all(db: AsyncSession, user_id: str, skip: int = 0, limit: int = 100) -> List[SavedWorkflow]:
        query = (
            select(SavedWorkflow)
            .where(SavedWorkflow.user_id == user_id)
            .order_by(desc(SavedWorkflow.created_at))
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str, workflow_id: str) -> Optional[SavedWorkflow]:
        query = select(SavedWorkflow).where(SavedWorkflow.id == workflow_id, SavedWorkflow.user_id == user_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, user_id: str, workflow_in: WorkflowCreate) -> SavedWorkflow:
        now = utcnow()
        db_workflow = SavedWorkflow(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=workflow_in.name,
            description=workflow_in.description,
            workflow_json=workflow_in.workflow_json.to_payload(),
            explanation=workflow_in.explanation.model_dump() if workflow_in.explanation else None,
            langflow_flow_id=None,
            created_at=now,
            updated_at=now,
        )
        db.add(db_workflow)
        await db.flush()
        return db_workflow

    @staticmethod
    async def update(db: AsyncSession, user_id: str, workflow_id: str, workflow_in: WorkflowUpdate) -> bool:
        workflow = await WorkflowService.get_by_id(db, user_id, workflow_id)
        if not workflow:
            return False

        for key in workflow_in.model_fields_set:
            value = getattr(workflow_in, key)
            if value is None and key in NOT_NULL_FIELDS:
                continue
            if key == "workflow_json":
                value = value.to_payload()
            elif key == "explanation" and value is not None:
                value = value.model_dump()
            setattr(workflow, key, value)
        # Refreshed on every accepted call, even when the patch is empty.
        workflow.updated_at = utcnow()

        await db.flush()
        return True

    @staticmethod
    async def delete(db: AsyncSession, user_id: str, workflow_id: str) -> bool:
        query = delete(SavedWorkflow).where(SavedWorkflow.id == workflow_id, SavedWorkflow.user_id == user_id)
        result = await db.execute(query)
        return result.rowcount > 0
