"""DTOs for audit events (append-only audit trail)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from audittrail.shared.enums import ActorType, AuditAction, AuditResourceType


@dataclass(frozen=True)
class FieldChange:
    """One attribute's value transition between two snapshots of a record."""

    field: str
    old: Any = None
    new: Any = None

    def to_dict(self) -> dict[str, Any]:
        """JSON shape stored in the changes column."""
        return {"field": self.field, "old": self.old, "new": self.new}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldChange:
        return cls(field=data["field"], old=data.get("old"), new=data.get("new"))


@dataclass(frozen=True)
class AuditLogParams:
    """Input for AuditService.log / log_sync.

    actor_* fields override what the ambient request context carries.
    """

    action: AuditAction | str
    resource_type: AuditResourceType | str
    resource_id: str | int
    resource_name: str | None = None
    changes: list[FieldChange] | None = None
    metadata: dict[str, Any] | None = None
    actor_type: ActorType | None = None
    actor_id: int | None = None
    actor_email: str | None = None
    actor_ip: str | None = None
    actor_device: str | None = None


@dataclass(frozen=True)
class NewAuditEvent:
    """A fully built audit record, ready for the store (no id/hash yet)."""

    timestamp: datetime
    actor_id: int | None
    actor_type: ActorType | str
    actor_email: str | None
    actor_ip: str | None
    actor_device: str | None
    action: AuditAction | str
    resource_type: AuditResourceType | str
    resource_id: str
    resource_name: str | None
    changes: list[FieldChange] | None
    metadata: dict[str, Any] | None


@dataclass(frozen=True)
class AuditEvent:
    """Persisted audit record (read model)."""

    id: int
    timestamp: datetime
    actor_id: int | None
    actor_type: str
    actor_email: str | None
    actor_ip: str | None
    actor_device: str | None
    action: str
    resource_type: str
    resource_id: str
    resource_name: str | None
    changes: list[FieldChange] | None
    metadata: dict[str, Any] | None
    event_hash: str
    created_at: datetime


@dataclass(frozen=True)
class AuditQueryOptions:
    """Paging and ordering for audit queries (newest first by default)."""

    limit: int | None = None
    offset: int | None = None
    order_by: Literal["timestamp", "id"] = "timestamp"
    order_dir: Literal["asc", "desc"] = "desc"


@dataclass(frozen=True)
class AuditFilter:
    """Filters for querying and counting audit events. None means no filter."""

    actor_id: int | None = None
    action: AuditAction | str | None = None
    resource_type: AuditResourceType | str | None = None
    resource_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    options: AuditQueryOptions = field(default_factory=AuditQueryOptions)
