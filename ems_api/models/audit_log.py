from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.schema import Index

from ems_api.database import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)

    actor_role = Column(String, nullable=False)
    actor_name = Column(String, nullable=False)

    action = Column(String, nullable=False, index=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )
