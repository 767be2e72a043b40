"""Error taxonomy for the flipbook service.

Every error carries the HTTP status it maps to, a stable ``message`` for the
frontend and an ``error`` detail string for diagnostics.
"""

from typing import Optional


class FlipbookError(Exception):
    """Base exception for the flipbook service"""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.error}


class ValidationError(FlipbookError):
    """Missing or malformed input"""

    status_code = 400
    default_message = "Invalid request"


class AdminExistsError(ValidationError):
    default_message = "Admin already registered"


class NotFoundError(FlipbookError):
    status_code = 404
    default_message = "Not found"


class FlipbookNotFound(NotFoundError):
    default_message = "Flipbook not found"


class PageOutOfRange(NotFoundError):
    """Requested page is outside [1, total_pages]"""

    default_message = "Page not found"

    def __init__(self, page_number: int, total_pages: int):
        self.page_number = page_number
        self.total_pages = total_pages
        super().__init__(
            error=f"Page {page_number} is outside 1..{total_pages}"
        )


class AccessDeniedError(FlipbookError):
    status_code = 403
    default_message = "Access denied"


class FlipbookDeactivated(AccessDeniedError):
    default_message = "Flipbook deactivated"


class FlipbookExpired(AccessDeniedError):
    default_message = "Flipbook expired"


class ExtractionFailure(FlipbookError):
    """Source PDF could not be parsed or serialized"""

    default_message = "Failed to process PDF"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, error=str(cause) if cause else None)


class ResourceExhaustion(FlipbookError):
    """Allocation failed while extracting; a smaller file may succeed"""

    default_message = "PDF too large to process. Please try a smaller file or contact support."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, error="Memory allocation failed")


class InternalError(FlipbookError):
    pass
