from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any
from datetime import datetime
from flowsmith.schemas.flow import FLOW_ID_PATTERN, FlowGraph

class ExplanationComponent(BaseModel):
    name: str
    type: str
    purpose: str = ""
    configuration: Optional[str] = None

class WorkflowExplanation(BaseModel):
    overview: str
    components: List[ExplanationComponent] = []
    dataFlow: str = ""
    expectedOutput: str = ""

class WorkflowBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class WorkflowCreate(WorkflowBase):
    workflow_json: FlowGraph
    explanation: Optional[WorkflowExplanation] = None

class WorkflowUpdate(BaseModel):
    """Sparse patch: only fields present in the request are written."""

    name: Optional[str] = None
    description: Optional[str] = None
    workflow_json: Optional[FlowGraph] = None
    explanation: Optional[WorkflowExplanation] = None
    langflow_flow_id: Optional[str] = Field(None, pattern=FLOW_ID_PATTERN)

class WorkflowInDB(WorkflowBase):
    id: str
    user_id: str
    workflow_json: Dict[str, Any]
    explanation: Optional[Dict[str, Any]] = None
    langflow_flow_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class WorkflowSummary(WorkflowBase):
    id: str
    langflow_flow_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ValidationReport(BaseModel):
    valid: bool
    errors: List[Dict[str, Any]] = []

class PushOutcome(BaseModel):
    flowId: str
    flowUrl: str

class SyncOutcome(BaseModel):
    workflow: WorkflowInDB
    applied: bool

class SaveAndPushRequest(WorkflowCreate):
    folderId: Optional[str] = None

class SaveAndPushResponse(BaseModel):
    """The record is always saved; ``push``/``error`` report the remote step alone."""

    workflow: WorkflowInDB
    push: Optional[PushOutcome] = None
    error: Optional[Dict[str, Any]] = None
