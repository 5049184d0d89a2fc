"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from audittrail.infrastructure.
"""

from audittrail.application.interfaces.repositories import IAuditEventRepository
from audittrail.application.interfaces.services import IAuditService, IHashService

__all__ = [
    "IAuditEventRepository",
    "IAuditService",
    "IHashService",
]
