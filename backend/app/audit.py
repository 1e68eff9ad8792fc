"""Audit events for capacity overrides and authorization rejections.

The core only emits events; storage and format of the audit log belong to
whatever ``AuditSink`` is plugged in.
"""

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class AuditDecision(str, Enum):
    """Outcome recorded in an audit event."""

    denied = "denied"
    override = "override"


@dataclass(frozen=True)
class AuditEvent:
    """One auditable decision."""

    principal_id: UUID | None
    tenant_id: UUID | None
    operation: str
    decision: AuditDecision
    reason: str
    details: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Serializable form."""
        payload = asdict(self)
        payload["principal_id"] = str(self.principal_id) if self.principal_id else None
        payload["tenant_id"] = str(self.tenant_id) if self.tenant_id else None
        payload["decision"] = self.decision.value
        payload["occurred_at"] = self.occurred_at.isoformat()
        return payload


class AuditSink(Protocol):
    """Receiver of audit events."""

    def emit(self, event: AuditEvent) -> None:
        """Record one event."""
        ...


class LoggingAuditSink:
    """Writes audit events as structured log records."""

    def __init__(self, audit_logger: logging.Logger | None = None) -> None:
        self._logger = audit_logger or logger

    def emit(self, event: AuditEvent) -> None:
        """Log the event at WARNING for denials, INFO otherwise."""
        level = logging.WARNING if event.decision == AuditDecision.denied else logging.INFO
        self._logger.log(
            level,
            f"audit: {event.operation} {event.decision.value}",
            extra={"structured": {"audit": event.to_dict()}},
        )


class InMemoryAuditSink:
    """Keeps audit events in a list."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def emit(self, event: AuditEvent) -> None:
        with self._lock:
            self.events.append(event)
