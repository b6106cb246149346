"""
Errors raised by the FileVault core.

Every error carries a short, stable reason string. The API renders them as
{"error": reason} with the status code of the error class, so nothing else
(paths, ids, tracebacks) reaches the client.
"""


class FileVaultError(Exception):
    status_code = 500
    reason = "Internal error"

    def __init__(self, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class Unauthorized(FileVaultError):
    status_code = 401
    reason = "Unauthorized"


class BadRequest(FileVaultError):
    status_code = 400
    reason = "Bad request"


class Conflict(BadRequest):
    """A unique key (e.g. a user's email) is already taken"""

    reason = "Already exists"


class NotFound(FileVaultError):
    """The resource does not exist, or the caller is not allowed to know that it exists"""

    status_code = 404
    reason = "Not found"


class InvalidParent(BadRequest):
    reason = "Invalid parent"


class ParentNotFound(InvalidParent):
    reason = "Parent not found"


class ParentNotFolder(InvalidParent):
    reason = "Parent is not a folder"


class JobFailure(FileVaultError):
    """A thumbnail job that can never succeed; it is reported and not retried"""

    reason = "Job failed"
