"""Audit event ORM model. Append-only audit trail with an integrity hash per row."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Connection, DateTime, Index, Integer, String, Text, event, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from audittrail.infrastructure.persistence.database import Base

# JSONB on Postgres, plain JSON elsewhere.
_JSON = JSON().with_variant(JSONB(), "postgresql")


class AuditEventRecord(Base):
    """One audit event: who did what, when, to which resource, with which changes. No update."""

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_timestamp", "timestamp"),
        Index("idx_audit_events_resource", "resource_type", "resource_id"),
        Index("idx_audit_events_actor", "actor_id"),
        Index("idx_audit_events_action", "action"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actor_type: Mapped[str] = mapped_column(String(32), nullable=False)
    actor_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_ip: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_device: Mapped[str | None] = mapped_column(Text, nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    changes: Mapped[list[dict[str, Any]] | None] = mapped_column(_JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", _JSON, nullable=True
    )
    event_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False
    )


@event.listens_for(AuditEventRecord, "before_update")
def _prevent_audit_event_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: AuditEventRecord
) -> None:
    """Audit events are append-only; updates are forbidden."""
    raise ValueError("Audit events are immutable and cannot be updated.")
