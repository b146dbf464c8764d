"""
Journal d'activité des administrateurs (piste d'audit).
"""

import uuid
from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    action = Column(String(100), nullable=False)        # ex. delete_student, send_notification
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(100), nullable=True)
    details = Column(JSON, nullable=True)
    status = Column(String(20), default="success")
    admin_id = Column(String(100), nullable=True)
    admin_username = Column(String(100), nullable=True)
    admin_role = Column(String(50), nullable=True)
    timestamp = Column(DateTime, server_default=func.now(), index=True)
