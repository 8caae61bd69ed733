from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    """Base class for failures the caller can tell apart and render."""

    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidArgument(ServiceError):
    status_code = 400
    default_detail = "Cannot target yourself"


class Conflict(ServiceError):
    status_code = 409
    default_detail = "A relationship already exists for this pair"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Relationship not found"


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Not allowed to act on this relationship"


async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
