"""Audit middleware: records every state-changing request to audit_trail."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from contractoros.core.exceptions import AppException
from contractoros.core.security import CurrentUser, user_from_token
from contractoros.db.base import async_session_factory
from contractoros.domain.audit import AuditTrail

logger = logging.getLogger(__name__)

_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
_UUID_LENGTH = 36


def _identity(request: Request) -> Optional[CurrentUser]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return user_from_token(token)
    except AppException:
        return None


def describe_path(path: str) -> tuple[str, Optional[str]]:
    """``/api/invoices/<uuid>/send`` -> ("invoice", "<uuid>")."""
    parts = [p for p in path.strip("/").split("/") if p and p != "api"]
    if not parts:
        return "unknown", None
    entity_type = parts[0].rstrip("s") or parts[0]
    entity_id = next((p for p in parts[1:] if len(p) == _UUID_LENGTH), None)
    return entity_type, entity_id


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs all write operations.

    The audit row is written in a background task after the response is
    produced. Failures are logged and never reach the caller.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if request.method in _WRITE_METHODS:
            asyncio.create_task(self.record(request, response.status_code, duration_ms))

        return response

    async def record(self, request: Request, status_code: int, duration_ms: int) -> None:
        try:
            user = _identity(request)
            entity_type, entity_id = describe_path(request.url.path)
            session_factory = getattr(
                request.app.state, "audit_session_factory", async_session_factory
            )
            async with session_factory() as session:
                session.add(
                    AuditTrail(
                        org_id=user.org_id if user else "anonymous",
                        user_id=user.user_id if user else None,
                        ip_address=request.client.host if request.client else None,
                        user_agent=request.headers.get("user-agent"),
                        action=f"{request.method}:{status_code}",
                        entity_type=entity_type,
                        entity_id=entity_id,
                        description=f"{request.method} {request.url.path} -> {status_code} ({duration_ms}ms)",
                    )
                )
                await session.commit()
        except Exception as exc:
            logger.warning("Audit write failed for %s %s: %s", request.method, request.url.path, exc)
