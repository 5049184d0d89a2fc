"""Request-scoped audit context using contextvars.

Provides async-safe storage for the audit context of the current request:
who is acting, from where, and through which HTTP call. asyncio copies the
current context into every task it creates, so the context survives every
await inside the request and concurrent requests never see each other's.

Usage:
    context = create_audit_context(metadata)
    await run_with_audit_context(context, handler, request)

    # later, once authentication resolved the user
    update_audit_actor(actor_id=42, actor_email="a@b.com")

    context = get_audit_context()  # None outside a request
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, TypeVar

from audittrail.domain.exceptions import AuditContextMissingException
from audittrail.shared.enums import ActorType
from audittrail.shared.utils.generators import generate_request_id

T = TypeVar("T")

_current_audit_context: ContextVar[AuditRequestContext | None] = ContextVar(
    "current_audit_context", default=None
)

# Captured once at creation; only actor identity is filled in later.
_IMMUTABLE_FIELDS = frozenset(
    {"request_id", "actor_ip", "actor_device", "http_method", "endpoint"}
)


@dataclass(frozen=True)
class AuditRequestMetadata:
    """Inbound request facts needed to build an audit context."""

    method: str | None = None
    path: str | None = None
    peer_address: str | None = None
    forwarded_for: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


@dataclass
class AuditRequestContext:
    """Audit context of one logical request.

    Actor fields start empty and are filled by update_audit_actor() after
    authentication. Request provenance fields are fixed at creation;
    assigning them afterwards raises AttributeError.
    """

    request_id: str
    actor_ip: str | None = None
    actor_device: str | None = None
    http_method: str | None = None
    endpoint: str | None = None
    actor_id: int | None = None
    actor_email: str | None = None
    actor_type: ActorType = field(default=ActorType.USER)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} is fixed for the lifetime of the request")
        super().__setattr__(name, value)


def client_ip_from(forwarded_for: str | None, peer_address: str | None) -> str | None:
    """Return the first X-Forwarded-For hop (trimmed), else the peer address."""
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_address or None


def create_audit_context(metadata: AuditRequestMetadata) -> AuditRequestContext:
    """Build a fresh context from inbound request metadata.

    Args:
        metadata: Facts read from the HTTP boundary.

    Returns:
        New context with actor identity unset and actor_type USER.
    """
    return AuditRequestContext(
        request_id=metadata.request_id or generate_request_id(),
        actor_ip=client_ip_from(metadata.forwarded_for, metadata.peer_address),
        actor_device=metadata.user_agent or None,
        http_method=metadata.method or None,
        endpoint=metadata.path or None,
    )


@contextmanager
def audit_context_scope(context: AuditRequestContext) -> Iterator[AuditRequestContext]:
    """Make `context` the active audit context for the enclosed block.

    Works in sync and async code; the previous context is restored on exit.
    """
    token = _current_audit_context.set(context)
    try:
        yield context
    finally:
        _current_audit_context.reset(token)


def run_with_audit_context(
    context: AuditRequestContext,
    fn: Callable[..., T] | Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T | Awaitable[T]:
    """Run `fn` so that everything reachable from it sees `context`.

    A plain callable runs immediately and its result is returned. A
    coroutine function is not started here: the returned awaitable enters
    the scope when awaited, so the context stays active across every
    suspension point of `fn`.
    """
    if inspect.iscoroutinefunction(fn):

        async def _run() -> T:
            with audit_context_scope(context):
                return await fn(*args, **kwargs)

        return _run()
    with audit_context_scope(context):
        return fn(*args, **kwargs)


def get_audit_context() -> AuditRequestContext | None:
    """Return the active audit context, or None outside a request scope."""
    return _current_audit_context.get()


def require_audit_context() -> AuditRequestContext:
    """Return the active audit context.

    Raises:
        AuditContextMissingException: If called outside a request scope.
    """
    context = _current_audit_context.get()
    if context is None:
        raise AuditContextMissingException()
    return context


def update_audit_actor(
    actor_id: int | None,
    actor_email: str | None,
    actor_type: ActorType | None = None,
) -> None:
    """Fill in actor identity on the active context (no-op without one).

    Mutates the context in place so every piece of work in the same request,
    including tasks spawned before this call, sees the authenticated actor.
    """
    context = _current_audit_context.get()
    if context is None:
        return
    context.actor_id = actor_id
    context.actor_email = actor_email
    if actor_type is not None:
        context.actor_type = actor_type
