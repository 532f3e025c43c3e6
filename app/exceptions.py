from fastapi import Request
from fastapi.responses import JSONResponse

from services.exceptions import (
    InspectionDomainError,
    ValidationError,
    NotFoundError,
    StorageError,
    ExportError,
)

STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    StorageError: 503,
    ExportError: 500,
}

ERROR_NAMES = {
    ValidationError: "Validation Error",
    NotFoundError: "Not Found",
    StorageError: "Storage Error",
    ExportError: "Export Error",
}


async def domain_exception_handler(request: Request, exc: InspectionDomainError):
    status_code = 500
    error = "Inspection Error"
    for exc_type, code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            status_code = code
            error = ERROR_NAMES[exc_type]
            break

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": exc.message,
            "field": exc.field,
        },
    )
