"""Request rate limiting by path class, with X-RateLimit-* headers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from contractoros.core.config import settings
from contractoros.core.exceptions import error_body
from contractoros.services.rate_limiter import (
    WindowRateLimiter,
    get_client_identifier,
    rate_limit_headers,
)

logger = logging.getLogger(__name__)

# Longest prefix first
_PATH_PRESETS: list[tuple[str, str]] = [
    ("/api/voice-logs/upload", "upload"),
    ("/api/assistant", "assistant"),
    ("/api/auth", "auth"),
    ("/api/", "api"),
]


def preset_for_path(path: str) -> Optional[str]:
    for prefix, preset in _PATH_PRESETS:
        if path == prefix.rstrip("/") or path.startswith(prefix):
            return preset
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiters: dict[str, WindowRateLimiter] | None = None):
        super().__init__(app)
        self._limiters = limiters or {
            name: WindowRateLimiter.from_preset(name)
            for name in {preset for _, preset in _PATH_PRESETS}
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        preset = preset_for_path(request.url.path)
        limiter = self._limiters.get(preset) if preset else None
        if not settings.rate_limit_enabled or limiter is None or request.method == "OPTIONS":
            return await call_next(request)

        client = get_client_identifier(request)
        result = limiter.check(f"{preset}:{client}")
        if not result.success:
            logger.warning("Rate limit exceeded preset=%s client=%s", preset, client)
            return JSONResponse(
                status_code=429,
                content=error_body("RATE_LIMITED", "Too many requests, please try again later."),
                headers=rate_limit_headers(result),
            )

        response = await call_next(request)
        response.headers.update(rate_limit_headers(result, include_retry_after=False))
        return response
