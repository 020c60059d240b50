import json
import logging
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from roombot.models.audit_log import AuditLog


logger = logging.getLogger(__name__)


class AuditLogger:
    """Append one ``audit_logs`` row per processed command."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, request, command_type: str, parameters: dict, result, elapsed_ms: int):
        entry = AuditLog(
            user_email=request.requester_id,
            user_name=request.requester_name,
            command=request.full_text or request.text,
            command_type=command_type,
            parameters=json.dumps(parameters, ensure_ascii=False, default=str),
            status="success" if result.success else "failure",
            response=result.message,
            error_message=result.error_detail,
            ip_address=request.source_ip,
            room_name=request.channel,
            elapsed_ms=elapsed_ms,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to write audit entry for {request.requester_id}")

    def recent(self, limit: int = 100) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )
