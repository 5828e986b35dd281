"""Error types and HTTP classification for task storage and task operations."""

from enum import Enum

from pydantic import BaseModel, ValidationError


class TaskStoreError(RuntimeError):
    """Base class for failures of the persisted task document."""


class StoreUnavailableError(TaskStoreError):
    """The backing file or database could not be read or written."""


class MalformedStoreError(TaskStoreError):
    """The persisted document is not a JSON array of task records."""


class EmptyWriteRefusedError(TaskStoreError):
    """An empty task list was about to overwrite the store without explicit authorization."""


class TaskNotFoundError(KeyError):
    """No task exists with the requested ID."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


class ProjectNotFoundError(KeyError):
    """No project exists with the requested ID."""

    def __init__(self, project_id: str) -> None:
        super().__init__(project_id)
        self.project_id = project_id

    def __str__(self) -> str:
        return f"Project not found: {self.project_id}"


class InvalidTaskInputError(ValueError):
    """A request carried values that cannot be applied to a task."""


class UnsupportedTaskTypeError(InvalidTaskInputError):
    """The operation only applies to another task type (e.g. time tracking on a check-in)."""


class BatchSizeError(InvalidTaskInputError):
    """A batch request was empty or named too many task IDs."""


class ErrorCategory(Enum):
    """Categories of errors surfaced by the API."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"
    MALFORMED_STORE = "malformed_store"
    WRITE_REFUSED = "write_refused"
    UNKNOWN = "unknown"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_INVALID_INPUT = "ERR_INVALID_INPUT"
    ERR_UNSUPPORTED_TASK_TYPE = "ERR_UNSUPPORTED_TASK_TYPE"
    ERR_BATCH_SIZE = "ERR_BATCH_SIZE"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_PROJECT_NOT_FOUND = "ERR_PROJECT_NOT_FOUND"
    ERR_STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"
    ERR_MALFORMED_STORE = "ERR_MALFORMED_STORE"
    ERR_EMPTY_WRITE_REFUSED = "ERR_EMPTY_WRITE_REFUSED"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error with the HTTP status it maps to."""

    code: str
    message: str
    category: ErrorCategory
    status_code: int


def classify_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an exception raised by a service into an API error.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, message, category, and HTTP status code
    """
    if isinstance(exception, TaskNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message="Task not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
        )

    if isinstance(exception, ProjectNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_PROJECT_NOT_FOUND,
            message="Project not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
        )

    if isinstance(exception, UnsupportedTaskTypeError):
        return ErrorResponse(
            code=ErrorCode.ERR_UNSUPPORTED_TASK_TYPE,
            message=str(exception),
            category=ErrorCategory.INVALID_INPUT,
            status_code=400,
        )

    if isinstance(exception, BatchSizeError):
        return ErrorResponse(
            code=ErrorCode.ERR_BATCH_SIZE,
            message=str(exception),
            category=ErrorCategory.INVALID_INPUT,
            status_code=400,
        )

    if isinstance(exception, InvalidTaskInputError | ValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_INPUT,
            message=str(exception),
            category=ErrorCategory.INVALID_INPUT,
            status_code=400,
        )

    if isinstance(exception, StoreUnavailableError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE_UNAVAILABLE,
            message="Task data is temporarily unavailable",
            category=ErrorCategory.STORE_UNAVAILABLE,
            status_code=503,
        )

    if isinstance(exception, MalformedStoreError):
        return ErrorResponse(
            code=ErrorCode.ERR_MALFORMED_STORE,
            message="Task data file is malformed",
            category=ErrorCategory.MALFORMED_STORE,
            status_code=500,
        )

    if isinstance(exception, EmptyWriteRefusedError):
        return ErrorResponse(
            code=ErrorCode.ERR_EMPTY_WRITE_REFUSED,
            message="Refused to overwrite task data with an empty list",
            category=ErrorCategory.WRITE_REFUSED,
            status_code=500,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred",
        category=ErrorCategory.UNKNOWN,
        status_code=500,
    )
