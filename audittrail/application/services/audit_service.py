"""Audit event service: builds audit records and persists them (implements IAuditService).

Reads the ambient request context for actor and HTTP provenance, encrypts PII,
redacts sensitive metadata and writes through the injected repository. A
failed write is logged and swallowed: auditing never fails the business
operation that triggered it.

Usage:
    await audit_service.log_sync(AuditLogParams(action=..., resource_type=..., resource_id=...))
    audit_service.log(params)  # fire-and-forget inside a running event loop
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from audittrail.application.dtos.audit_event import AuditLogParams, FieldChange, NewAuditEvent
from audittrail.application.interfaces.repositories import IAuditEventRepository
from audittrail.application.services.change_diff import ChangeDiffEngine
from audittrail.application.services.pii_encryption import (
    REDACTED,
    PiiEncryptor,
    is_sensitive_field,
)
from audittrail.domain.exceptions import AuditServiceNotInitializedException
from audittrail.shared.context import AuditRequestContext, get_audit_context
from audittrail.shared.enums import ActorType, AuditResourceType, enum_value
from audittrail.shared.telemetry.logging import get_logger
from audittrail.shared.utils.datetime import utc_now

logger = get_logger(__name__)


def _first_set(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


class AuditService:
    """Builds, protects and persists audit events."""

    def __init__(
        self,
        repository: IAuditEventRepository,
        encryptor: PiiEncryptor,
        diff_engine: ChangeDiffEngine | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self.repository = repository
        self.encryptor = encryptor
        self.diff_engine = diff_engine or ChangeDiffEngine(encryptor)
        self.enabled = enabled
        self._pending: set[asyncio.Task[None]] = set()

    async def log_sync(self, params: AuditLogParams) -> None:
        """Build the event and wait for the write. Storage errors are logged, not raised."""
        if not self.enabled:
            logger.debug(
                "Audit logging disabled; dropping %s %s:%s",
                enum_value(params.action),
                enum_value(params.resource_type),
                params.resource_id,
            )
            return
        try:
            event = self.build_event(params, get_audit_context())
            await self.repository.create(event)
        except Exception:
            logger.error(
                "Failed to create audit event for %s %s:%s",
                enum_value(params.action),
                enum_value(params.resource_type),
                params.resource_id,
                exc_info=True,
            )
            return
        logger.debug(
            "Audit event stored for %s %s:%s",
            enum_value(params.action),
            enum_value(params.resource_type),
            params.resource_id,
        )

    def log(self, params: AuditLogParams) -> None:
        """Fire-and-forget log_sync. Returns immediately; failures only reach the log.

        The write is detached from the caller: if the process exits first the
        event is lost. Use log_sync when the record must exist before responding.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop; audit event %s %s:%s dropped (use log_sync)",
                enum_value(params.action),
                enum_value(params.resource_type),
                params.resource_id,
            )
            return
        task = loop.create_task(self.log_sync(params))
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_log_done(t, params))

    def _on_log_done(self, task: asyncio.Task[None], params: AuditLogParams) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Async audit log failed for %s %s:%s",
                enum_value(params.action),
                enum_value(params.resource_type),
                params.resource_id,
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait for every pending fire-and-forget write (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def build_event(
        self, params: AuditLogParams, context: AuditRequestContext | None
    ) -> NewAuditEvent:
        """Assemble the record: actor resolution, PII encryption, metadata."""
        actor_email = _first_set(params.actor_email, context.actor_email if context else None)
        actor_ip = _first_set(params.actor_ip, context.actor_ip if context else None)
        actor_device = _first_set(params.actor_device, context.actor_device if context else None)

        changes: list[FieldChange] | None = None
        if params.changes is not None:
            changes = [
                FieldChange(
                    field=change.field,
                    old=self.encryptor.encrypt_if_pii(change.old, change.field, params.resource_type),
                    new=self.encryptor.encrypt_if_pii(change.new, change.field, params.resource_type),
                )
                for change in params.changes
            ]

        return NewAuditEvent(
            timestamp=utc_now(),
            actor_id=_first_set(params.actor_id, context.actor_id if context else None),
            actor_type=_first_set(
                params.actor_type, context.actor_type if context else None, ActorType.USER
            ),
            actor_email=self.encryptor.encrypt_actor_field("actorEmail", actor_email),
            actor_ip=self.encryptor.encrypt_actor_field("actorIp", actor_ip),
            actor_device=self.encryptor.encrypt_actor_field("actorDevice", actor_device),
            action=params.action,
            resource_type=params.resource_type,
            resource_id=str(params.resource_id),
            resource_name=params.resource_name,
            changes=changes,
            metadata=self._build_metadata(context, params.metadata),
        )

    @staticmethod
    def _build_metadata(
        context: AuditRequestContext | None,
        additional: Mapping[str, Any] | None,
    ) -> dict[str, Any] | None:
        """HTTP provenance plus caller extras; sensitive keys redacted, never encrypted."""
        if context is None and additional is None:
            return None
        metadata: dict[str, Any] = {}
        if context is not None:
            if context.http_method:
                metadata["httpMethod"] = context.http_method
            if context.endpoint:
                metadata["endpoint"] = context.endpoint
            if context.request_id:
                metadata["requestId"] = context.request_id
        if additional:
            for key, value in additional.items():
                metadata[key] = REDACTED if is_sensitive_field(key) else value
        return metadata or None

    def compute_changes(
        self,
        old_value: Mapping[str, Any] | None,
        new_value: Mapping[str, Any] | None,
        resource_type: AuditResourceType | str,
        tracked_fields: Sequence[str] | None = None,
    ) -> list[FieldChange]:
        """Field changes between two snapshots, ready to pass as params.changes."""
        return self.diff_engine.diff(old_value, new_value, resource_type, tracked_fields)

    def decrypt_pii(self, value: str) -> str:
        """Reveal one encrypted value for an authorized viewer."""
        return self.encryptor.decrypt(value)

    def decrypt_changes(
        self,
        changes: Sequence[FieldChange] | None,
        resource_type: AuditResourceType | str,
    ) -> list[FieldChange] | None:
        """Reveal the PII fields of a stored change list."""
        return self.encryptor.decrypt_changes(changes, resource_type)


# Process-wide instance for instrumentation call sites; installed by the
# composition root (audittrail.core.bootstrap.init_audit).
_global_audit_service: AuditService | None = None


def set_global_audit_service(service: AuditService | None) -> None:
    """Install (or clear, with None) the process-wide audit service."""
    global _global_audit_service
    _global_audit_service = service


def get_audit_service() -> AuditService:
    """Return the process-wide audit service.

    Raises:
        AuditServiceNotInitializedException: If none was installed at startup.
    """
    if _global_audit_service is None:
        raise AuditServiceNotInitializedException()
    return _global_audit_service


def get_audit_service_or_none() -> AuditService | None:
    """Return the process-wide audit service, or None when auditing is optional."""
    return _global_audit_service


def audit_log(params: AuditLogParams) -> None:
    """Fire-and-forget log through the global service; no-op when none is installed."""
    service = get_audit_service_or_none()
    if service is None:
        return
    service.log(params)


async def audit_log_sync(params: AuditLogParams) -> None:
    """Awaited log through the global service; returns at once when none is installed."""
    service = get_audit_service_or_none()
    if service is None:
        return
    await service.log_sync(params)


def compute_audit_changes(
    old_value: Mapping[str, Any] | None,
    new_value: Mapping[str, Any] | None,
    resource_type: AuditResourceType | str,
    tracked_fields: Sequence[str] | None = None,
) -> list[FieldChange]:
    """compute_changes through the global service; [] when none is installed."""
    service = get_audit_service_or_none()
    if service is None:
        return []
    return service.compute_changes(old_value, new_value, resource_type, tracked_fields)
