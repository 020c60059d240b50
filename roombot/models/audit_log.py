from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String, Text
from roombot.db import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String, nullable=False)
    user_name = Column(String, nullable=False, default="")
    command = Column(Text, nullable=False)
    command_type = Column(String, nullable=False)
    parameters = Column(Text, nullable=False, default="{}")
    status = Column(String, nullable=False)
    response = Column(Text, nullable=False, default="")
    error_message = Column(Text, nullable=True)
    ip_address = Column(String, nullable=False, default="")
    room_name = Column(String, nullable=False, default="")
    elapsed_ms = Column(Integer, nullable=False, default=0)
    timestamp = Column(DateTime, index=True, nullable=False, default=datetime.utcnow)
