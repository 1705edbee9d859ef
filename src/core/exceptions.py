from typing import Optional


class AvatarStorageError(Exception):
    """Base exception for the avatar storage subsystem."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(AvatarStorageError):
    """Referenced entity is absent. Client error."""
    pass


class StudentNotFoundError(NotFoundError):
    """Raised when an upload references a student that does not exist."""

    def __init__(self, student_id: int):
        super().__init__(f"Student {student_id} not found", {"student_id": student_id})
        self.student_id = student_id


class AvatarNotFoundError(NotFoundError):
    """Raised when a student has no avatar record."""

    def __init__(self, student_id: int):
        super().__init__(f"Avatar for student {student_id} not found", {"student_id": student_id})
        self.student_id = student_id


class PayloadTooLargeError(AvatarStorageError):
    """Upload exceeds the configured size ceiling."""

    def __init__(self, limit: int, received: int):
        super().__init__(
            f"File is too big: {received} bytes, limit is {limit} bytes",
            {"limit": limit, "received": received}
        )
        self.limit = limit
        self.received = received


class StorageIOError(AvatarStorageError):
    """Disk read/write failure, including a record pointing at a missing file."""
    pass


class WriteConflictError(AvatarStorageError):
    """Another writer recreated the target file between removal and creation."""
    pass


class ValidationFailure(AvatarStorageError, ValueError):
    """Malformed filename or media type. Never reaches callers: a default is applied instead."""
    pass
