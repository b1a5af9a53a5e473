"""Error taxonomy shared by the stores, the chat agent and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Ownership failures are reported as ``NotFound`` so that a
caller cannot tell "absent" from "owned by someone else".
"""
from __future__ import annotations


class KnowLawError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(KnowLawError):
    status_code = 400
    default_message = "Invalid request"


class EmptyTitle(ValidationError):
    default_message = "Title is required"


class EmptyContent(ValidationError):
    default_message = "Content is required"


class EmailTaken(ValidationError):
    default_message = "Email already registered"


class InvalidCredentials(KnowLawError):
    status_code = 401
    default_message = "Invalid email or password"


class AuthenticationRequired(KnowLawError):
    status_code = 401
    default_message = "Not authenticated"


class NotFound(KnowLawError):
    status_code = 404
    default_message = "Not found"


class NotEditable(NotFound):
    default_message = "Message not found or cannot be edited"


class UploadRejected(KnowLawError):
    status_code = 400
    default_message = "File upload error"

    def __init__(self, filename: str | None = None, message: str | None = None) -> None:
        self.filename = filename
        super().__init__(message)


class TooManyFiles(UploadRejected):
    default_message = "Too many files. Maximum 10 files allowed."


class UnsupportedType(UploadRejected):
    default_message = "File type not allowed. Only PDF, DOC, DOCX, TXT, JPG, JPEG, and PNG files are allowed."


class FileTooLarge(UploadRejected):
    status_code = 413
    default_message = "File size too large. Maximum size is 10MB per file."


class StorageUnavailable(KnowLawError):
    status_code = 500
    default_message = "The service is temporarily unavailable. Please try again."


class UpstreamUnavailable(KnowLawError):
    """Raised by the completion client; the delegated responder always absorbs it."""

    status_code = 502
    default_message = "Upstream model unavailable"

    def __init__(self, message: str | None = None, *, reason: str = "error") -> None:
        self.reason = reason
        super().__init__(message)
