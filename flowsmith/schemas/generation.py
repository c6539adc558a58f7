from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal
from flowsmith.schemas.workflow import WorkflowExplanation

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class GenerateRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    session_id: Optional[str] = None

class GenerateResponse(BaseModel):
    content: str
    workflow: Optional[Dict[str, Any]] = None
    isValid: bool
    explanation: Optional[WorkflowExplanation] = None
    errors: List[str] = []
