"""Application-level exceptions and FastAPI exception handlers."""


from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None, message: str | None = None):
        if message is None:
            message = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(message, status_code=404, code="NOT_FOUND")

class ForbiddenError(AppException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, code="FORBIDDEN")

class UnauthorizedError(AppException):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")

class ConflictError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=409, code="CONFLICT")

class ValidationError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=422, code="VALIDATION_ERROR")

class PayloadTooLargeError(AppException):
    def __init__(self, message: str = "Storage quota exceeded"):
        super().__init__(message, status_code=413, code="QUOTA_EXCEEDED")

class PaymentError(AppException):
    """A payment was rejected; ``message`` is already user-friendly."""

    def __init__(self, message: str):
        super().__init__(message, status_code=402, code="PAYMENT_ERROR")

class RateLimitExceededError(AppException):
    """Raised when a request or AI budget limit is exhausted."""

    def __init__(
        self,
        message: str = "Too many requests",
        reset_at: datetime | None = None,
        retry_after: int | None = None,
    ):
        self.reset_at = reset_at
        self.retry_after = retry_after
        super().__init__(message, status_code=429, code="RATE_LIMITED")

class UpstreamServiceError(AppException):
    """Raised when every configured AI provider fails (upstream service error)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502, code="AI_PROVIDER_ERROR")

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        content = error_body(exc.code, exc.message)
        if exc.reset_at is not None:
            content["resetAt"] = exc.reset_at.isoformat()
        headers = {"Retry-After": str(max(1, exc.retry_after))} if exc.retry_after is not None else None
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message),
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
