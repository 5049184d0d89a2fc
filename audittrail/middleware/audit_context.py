"""Audit context middleware.

Creates one AuditRequestContext per HTTP request (IP, user agent, request id,
method and path) and runs the rest of the stack inside it, so audit calls made
anywhere during the request, after any number of awaits, attribute the event
to this request. Echoes the request id on the response.
Uses raw ASGI (no BaseHTTPMiddleware) so the context covers streaming bodies
and background tasks started by the route.
"""

from typing import Callable

from audittrail.shared.context import audit_context_scope, create_audit_context
from audittrail.shared.request_audit import request_metadata_from_scope


def AuditContextMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap each HTTP request in its own audit context. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        context = create_audit_context(
            request_metadata_from_scope(scope, request_id_header=header_name)
        )
        scope.setdefault("state", {})["request_id"] = context.request_id

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((header_name.lower().encode(), context.request_id.encode()))
                message["headers"] = headers
            await send(message)

        with audit_context_scope(context):
            await app(scope, receive, send_wrapper)

    return asgi_app
