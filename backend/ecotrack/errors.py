"""
Error kinds raised by the approval and alert services.

Each kind carries the HTTP status the API layer answers with, so routers never
have to inspect messages or numeric codes to decide how to respond.
"""


class ApprovalError(Exception):
    """Base class for every expected, caller-facing failure"""
    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ApprovalError):
    status_code = 401
    kind = "unauthenticated"


class Forbidden(ApprovalError):
    status_code = 403
    kind = "forbidden"


class InvalidInput(ApprovalError):
    status_code = 400
    kind = "invalid_input"


class NotFound(ApprovalError):
    status_code = 404
    kind = "not_found"


class Conflict(ApprovalError):
    status_code = 409
    kind = "conflict"
