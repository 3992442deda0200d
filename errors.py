import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=400, detail=detail)


class DuplicateEmail(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Email already registered")


class InvalidCredentials(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Invalid credentials")


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=401, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Not authorized"):
        super().__init__(status_code=403, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class InvalidObjectId(HTTPException):
    def __init__(self, detail: str = "Invalid ID"):
        super().__init__(status_code=400, detail=detail)


class InvalidExchangeId(InvalidObjectId):
    def __init__(self):
        super().__init__(detail="Invalid exchange ID")


class BookNotAvailable(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Book is not available for exchange")


class CannotRequestOwnBook(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Cannot request your own book")


class InvalidTransition(HTTPException):
    def __init__(self, detail: str = "Invalid status transition"):
        super().__init__(status_code=400, detail=detail)


class InvalidOrExpiredCode(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Invalid or expired OTP")


class InvalidSecurityAnswers(HTTPException):
    def __init__(self):
        super().__init__(status_code=400, detail="Invalid email or security answers")


class EmailDeliveryError(HTTPException):
    def __init__(self, detail: str = "Failed to send email"):
        super().__init__(status_code=500, detail=detail)


def server_error(detail: str) -> HTTPException:
    return HTTPException(status_code=500, detail=detail)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as a flat {"error": message} body."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Something went wrong!"})
