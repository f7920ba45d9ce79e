"""
Domain errors raised by the queue engine and name validator.

Every error carries a stable ``code`` that front ends use as a
translation key, so users see why their action didn't take effect.
"""


class QueueError(Exception):
    """Base class for all recoverable queue errors."""

    code = "queue_error"
    message = "Queue operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


# =============================================================================
# Validation errors (bad input)
# =============================================================================

class ValidationError(QueueError):
    code = "validation_error"


class EmptyName(ValidationError):
    code = "name_required"
    message = "Name is required"


class TooShort(ValidationError):
    code = "name_too_short"
    message = "Name must be at least 2 characters"


class TooLong(ValidationError):
    code = "name_too_long"
    message = "Name must be at most 24 characters"


class InvalidName(ValidationError):
    code = "name_invalid"
    message = "Name must contain letters"


class BlockedName(ValidationError):
    code = "name_blocked"
    message = "This name is not allowed"


class InvalidAmount(ValidationError):
    code = "invalid_amount"
    message = "Amount must be a non-negative number"


# =============================================================================
# Conflict errors (operation does not take effect)
# =============================================================================

class ConflictError(QueueError):
    code = "conflict"


class NameAlreadyQueued(ConflictError):
    code = "name_already_in_queue"
    message = "Someone with this name is already in the queue"


class DeviceAlreadyQueued(ConflictError):
    code = "device_already_in_queue"
    message = "This device is already in the queue"


class InvalidTransition(ConflictError):
    code = "invalid_transition"

    def __init__(self, entry_id: str, current: str, target: str):
        self.entry_id = entry_id
        self.current = current
        self.target = target
        super().__init__(f"Entry {entry_id} is {current} and cannot become {target}")


# =============================================================================
# Not found
# =============================================================================

class NotFoundError(QueueError):
    code = "not_found"


class EntryNotFound(NotFoundError):
    code = "entry_not_found"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Queue entry {entry_id} not found")
