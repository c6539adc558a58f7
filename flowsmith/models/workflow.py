from sqlalchemy import String, Text, JSON, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Optional
from flowsmith.database import Base
import uuid

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class SavedWorkflow(Base):
    __tablename__ = "workflows"
    __table_args__ = (Index("ix_workflows_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    workflow_json: Mapped[dict] = mapped_column(JSON, nullable=False)  # FlowGraph envelope
    explanation: Mapped[Optional[dict]] = mapped_column(JSON)
    langflow_flow_id: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
