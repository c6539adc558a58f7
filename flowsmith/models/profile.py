from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional
from flowsmith.database import Base
from flowsmith.models.workflow import utcnow

class Profile(Base):
    """Per-user workspace record; holds the builder folder once provisioned."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    username: Mapped[Optional[str]] = mapped_column(String)
    langflow_folder_id: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
