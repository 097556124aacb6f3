"""
Error taxonomy shared by every domain helper.

Helpers raise these; routes never build error responses by hand.
`register_error_handlers` turns them into JSON bodies of the form
``{"error": "..."}`` with the status code of the class.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MindMuseError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"error": self.message}


class UnauthorizedError(MindMuseError):
    """No valid session. Never carries detail about why."""

    status_code = 401

    def __init__(self):
        super().__init__("Unauthorized")


class NotFoundError(MindMuseError):
    """A referenced row is absent. Routine navigation case, not a crash."""

    status_code = 404

    def __init__(self, message: str, redirect: str = "/learn"):
        super().__init__(message)
        self.redirect = redirect

    def payload(self) -> dict:
        return {"error": self.message, "redirect": self.redirect}


class ValidationError(MindMuseError):
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def payload(self) -> dict:
        body = {"error": self.message}
        if self.field:
            body["field"] = self.field
        return body


class UpstreamServiceError(MindMuseError):
    """The generation service failed or returned something unusable."""

    status_code = 502


class PersistenceError(MindMuseError):
    status_code = 503


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MindMuseError)
    async def _domain_error(request: Request, exc: MindMuseError):
        if exc.status_code >= 500:
            logger.error("[ERROR] %s %s -> %s: %s", request.method, request.url.path,
                         type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or None
        message = first.get("msg", "Invalid request")
        if field:
            message = f"{field}: {message}"
        return JSONResponse(status_code=400, content=ValidationError(message, field).payload())
