"""
Audit trail for engine invocations.

Every ``score`` / ``decide`` call produces exactly one audit record holding
the redacted inputs, the outputs or errors, and component timings. Records
go to a caller-supplied callback, or to structlog by default.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import structlog
from pydantic.alias_generators import to_snake

from credit_engine.domain.entities import MONETARY_FIELDS, ApplicantProfile
from credit_engine.domain.interfaces import AuditLogger

logger = structlog.get_logger(__name__)

REDACTED = "[REDACTED]"

SENSITIVE_FIELDS = frozenset(
    MONETARY_FIELDS
    + (
        "phone_number",
        "social_security_number",
        "bank_account_number",
    )
)


def redact(data: Any) -> Any:
    """
    Copy of applicant data with monetary and identifying fields redacted.

    Works on raw mappings (camelCase or snake_case keys, nested records
    included) as well as validated profiles.
    """
    if isinstance(data, ApplicantProfile):
        return data.redacted()
    if isinstance(data, Mapping):
        redacted = {}
        for key, value in data.items():
            if isinstance(key, str) and to_snake(key) in SENSITIVE_FIELDS:
                redacted[key] = REDACTED
            else:
                redacted[key] = redact(value)
        return redacted
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return copy.deepcopy(data)


def log_audit_record(record: Dict[str, Any]) -> None:
    """Default sink: emit the record as a structured log event."""
    logger.info("audit_record", audit=record)


@dataclass
class AuditRecord:
    operation: str
    input: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    result: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)

    def add_error(self, error: BaseException, handled: bool = False) -> None:
        self.errors.append(
            {
                "type": type(error).__name__,
                "code": getattr(error, "code", None),
                "message": str(error),
                "handled": handled,
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
            "input": self.input,
            "result": self.result,
            "errors": list(self.errors),
            "notes": list(self.notes),
            "timings": dict(self.timings),
        }


class AuditRecorder:
    """
    Builds and emits audit records.

    Args:
        sink: Callback receiving one record per invocation (defaults to
            structured logging)
    """

    def __init__(self, sink: Optional[AuditLogger] = None):
        self._sink = sink or log_audit_record

    def start(
        self,
        operation: str,
        applicant_data: Any,
        options: Optional[Mapping[str, Any]] = None,
    ) -> AuditRecord:
        return AuditRecord(
            operation=operation,
            input={
                "data": redact(applicant_data),
                "options": redact(dict(options or {})),
            },
        )

    def emit(self, record: AuditRecord, sink: Optional[AuditLogger] = None) -> None:
        """Send the record to the per-call sink, or the recorder's default."""
        target = sink or self._sink
        try:
            target(record.to_dict())
        except Exception as e:
            logger.error(
                "audit_sink_failed",
                operation=record.operation,
                error=str(e),
            )
