from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from ems_api.database import Base


class HrUser(Base):
    __tablename__ = "hr_users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    pin_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
