from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from flowsmith.schemas.flow import FLOW_ID_PATTERN, FlowGraph

class ImportRequest(BaseModel):
    workflow: FlowGraph
    builderBaseUrl: str = Field(..., min_length=1)
    folderId: Optional[str] = None

class ImportResponse(BaseModel):
    success: bool = True
    flowId: str
    flowUrl: str

class SyncRequest(BaseModel):
    flowId: str = Field(..., pattern=FLOW_ID_PATTERN)

class SyncedWorkflow(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    data: Dict[str, Any]
    updated_at: Optional[str] = None

class SyncResponse(BaseModel):
    success: bool = True
    workflow: SyncedWorkflow

class FolderProvisionRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    username: Optional[str] = None

class FolderProvisionResponse(BaseModel):
    success: bool
    folderId: Optional[str] = None
    isNew: bool = False
