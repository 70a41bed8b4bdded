"""Domain errors raised by the service layer.

Each kind maps to one HTTP status and one stable ``code`` so clients can tell
"never going to work" (not_found, forbidden) from "change your request"
(conflict, bad_request).
"""


class TrackerError(Exception):
    """Base class for business-rule violations."""

    status_code = 500
    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(TrackerError):
    """Entity is absent or owned by someone else."""

    status_code = 404
    code = "not_found"


class ConflictError(TrackerError):
    """Requested transition violates a state invariant."""

    status_code = 409
    code = "conflict"


class ForbiddenError(TrackerError):
    """A time-based policy disallows the change."""

    status_code = 403
    code = "forbidden"


class BadRequestError(TrackerError):
    """Input is inconsistent in a way field validation cannot see."""

    status_code = 400
    code = "bad_request"
