"""Shared helpers for audit logging: derive request metadata from the HTTP boundary."""

from __future__ import annotations

import re
from typing import Any

from starlette.requests import Request

from audittrail.shared.context import AuditRequestMetadata

# Safe for logging: alphanumeric, hyphen, underscore, dot; max length to avoid abuse.
REQUEST_ID_MAX_LENGTH = 128
REQUEST_ID_ALLOWED_PATTERN = re.compile(
    r"^[a-zA-Z0-9._-]{1," + str(REQUEST_ID_MAX_LENGTH) + r"}$"
)


def safe_request_id(raw: str | None) -> str | None:
    """Return the inbound request id verbatim when safe for logs, else None.

    Ids outside the allowed pattern are replaced on purpose rather than
    echoed verbatim, so headers cannot inject into logs.

    None makes create_audit_context() generate a fresh id.
    """
    if raw and REQUEST_ID_ALLOWED_PATTERN.match(raw):
        return raw
    return None


def _get_header(scope: dict[str, Any], name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def request_metadata_from_scope(
    scope: dict[str, Any], request_id_header: str = "X-Request-ID"
) -> AuditRequestMetadata:
    """Build AuditRequestMetadata from a raw ASGI HTTP scope."""
    client = scope.get("client")
    return AuditRequestMetadata(
        method=scope.get("method"),
        path=scope.get("path"),
        peer_address=client[0] if client else None,
        forwarded_for=_get_header(scope, "X-Forwarded-For"),
        user_agent=_get_header(scope, "User-Agent"),
        request_id=safe_request_id(_get_header(scope, request_id_header)),
    )


def request_metadata_from_request(
    request: Request, request_id_header: str = "X-Request-ID"
) -> AuditRequestMetadata:
    """Build AuditRequestMetadata from a Starlette Request.

    For handlers that create a context themselves instead of relying on
    AuditContextMiddleware (e.g. webhooks mounted outside the middleware).
    """
    return AuditRequestMetadata(
        method=request.method,
        path=request.url.path,
        peer_address=request.client.host if request.client else None,
        forwarded_for=request.headers.get("X-Forwarded-For"),
        user_agent=request.headers.get("User-Agent"),
        request_id=safe_request_id(request.headers.get(request_id_header)),
    )
