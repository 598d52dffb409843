import json
import logging
from typing import Optional, Dict, Any

from ...application.ports.audit_logger import AuditLogger
from ...utils import hash_phone_number, utcnow


class StdAuditLogger(AuditLogger):
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("app.audit")

    def log(self, action: str, phone: Optional[str] = None, user_id: Optional[str] = None, success: bool = True, details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": utcnow().isoformat(),
            "action": action,
            "phone_hash": hash_phone_number(phone) if phone else None,
            "user_id": user_id,
            "success": success,
            "details": details or {},
        }
        if success:
            self._logger.info(f"AUDIT: {json.dumps(entry, default=str)}")
        else:
            self._logger.warning(f"AUDIT: {json.dumps(entry, default=str)}")
