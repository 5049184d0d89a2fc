"""HTTP middleware: ambient audit context per request.

Add as the outermost middleware so every handler, dependency and background
task started by the route runs inside the request's audit context.
"""

from audittrail.middleware.audit_context import AuditContextMiddleware

__all__ = ["AuditContextMiddleware"]
