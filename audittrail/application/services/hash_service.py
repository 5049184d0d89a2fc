"""Hash service for audit event integrity (canonical JSON + algorithm)."""

from __future__ import annotations

import hashlib
import hmac
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from audittrail.application.dtos.audit_event import AuditEvent, FieldChange, NewAuditEvent
from audittrail.shared.enums import enum_value
from audittrail.shared.utils.datetime import ensure_utc


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def hash(self, data: str) -> str:
        """Compute hash of input string."""
        ...


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation."""

    def hash(self, data: str) -> str:
        return hashlib.sha256(data.encode()).hexdigest()


class HashService:
    """Single source of truth for audit event hash computation (IHashService).

    The digest covers timestamp, actor id/type, action, resource type/id and
    changes. Stores compute it on create and recompute it to verify.
    """

    def __init__(self, algorithm: HashAlgorithm | None = None) -> None:
        self.algorithm = algorithm or SHA256Algorithm()

    @staticmethod
    def canonical_json(data: dict[str, Any]) -> str:
        """Canonical JSON for deterministic hashing."""
        return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)

    def compute_hash(
        self,
        timestamp: datetime,
        actor_id: int | None,
        actor_type: str,
        action: str,
        resource_type: str,
        resource_id: str,
        changes: list[FieldChange] | None,
    ) -> str:
        """Compute the integrity digest from the canonical subset of fields."""
        timestamp_utc = ensure_utc(timestamp) or timestamp
        hash_content = {
            "timestamp": timestamp_utc.isoformat(),
            "actorId": actor_id,
            "actorType": actor_type,
            "action": action,
            "resourceType": resource_type,
            "resourceId": resource_id,
            "changes": [c.to_dict() for c in changes] if changes is not None else None,
        }
        return self.algorithm.hash(self.canonical_json(hash_content))

    def compute_event_hash(self, event: NewAuditEvent | AuditEvent) -> str:
        """Digest for an event about to be stored, or recomputed for a stored one."""
        return self.compute_hash(
            timestamp=event.timestamp,
            actor_id=event.actor_id,
            actor_type=enum_value(event.actor_type),
            action=enum_value(event.action),
            resource_type=enum_value(event.resource_type),
            resource_id=event.resource_id,
            changes=event.changes,
        )

    def verify(self, expected_hash: str, actual_hash: str) -> bool:
        """Constant-time comparison of a stored and a recomputed digest."""
        return hmac.compare_digest(expected_hash, actual_hash)
