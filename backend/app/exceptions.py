"""
Structured exceptions and error responses for Cadence.

The scheduling engine raises these directly; the API layer renders them
through the handlers registered in app.main.
"""

from typing import Any, Dict, Optional, List
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "circular_dependency")
    message: str
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class CadenceException(Exception):
    """Base exception for all Cadence errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(CadenceException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class CircularDependencyError(CadenceException):
    """The dependency edges of a project contain a cycle."""

    def __init__(self, task_id: Any, cycle: Optional[List[Any]] = None):
        self.task_id = task_id
        self.cycle = list(cycle) if cycle else [task_id]
        path = " -> ".join(str(t) for t in self.cycle + self.cycle[:1])
        super().__init__(
            message=f"Circular dependency detected involving task {task_id}",
            error_code="circular_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["dependencies"],
                "msg": f"Cycle: {path}",
                "type": "cycle_error",
            }],
        )


class InvalidInputError(CadenceException):
    """Malformed scheduling input (duration, anchor date, direction)."""

    def __init__(self, message: str, task_id: Any = None):
        details = None
        if task_id is not None:
            details = [{"loc": ["tasks", str(task_id)], "msg": message, "type": "value_error"}]
        super().__init__(
            message=message,
            error_code="invalid_input",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )
        self.task_id = task_id


class DuplicateDependencyError(CadenceException):
    """Dependency already exists."""

    def __init__(self, predecessor_id: str, successor_id: str):
        super().__init__(
            message="This dependency already exists",
            error_code="duplicate_dependency",
            status_code=status.HTTP_409_CONFLICT,
        )


class SelfDependencyError(CadenceException):
    """Task cannot depend on itself."""

    def __init__(self, task_id: str):
        super().__init__(
            message="A task cannot depend on itself",
            error_code="self_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class CrossProjectDependencyError(CadenceException):
    """Cannot create dependency between tasks in different projects."""

    def __init__(self, predecessor_project: str, successor_project: str):
        super().__init__(
            message="Cannot create dependency between tasks in different projects",
            error_code="cross_project_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotATemplateError(CadenceException):
    """Template instantiation was asked to copy a regular project."""

    def __init__(self, project_id: str):
        super().__init__(
            message=f"Project {project_id} is not a template",
            error_code="not_a_template",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

def error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def cadence_exception_handler(request: Request, exc: CadenceException) -> JSONResponse:
    """Render a CadenceException as an ErrorResponse."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")

    return error_response(
        exc.status_code,
        ErrorResponse(
            error=exc.error_code,
            message=exc.message,
            details=[ErrorDetail(**d) for d in exc.details] if exc.details else None,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error="internal_error", message="An unexpected error occurred"),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(CadenceException, cadence_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
