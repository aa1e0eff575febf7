"""
Application error taxonomy.

Services raise these deliberately; the request boundary (views and the
app-level handler in app.py) turns them into a flash message and a redirect.
"""
from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    LOCKED_ACCOUNT = "locked_account"
    INACTIVE_ACCOUNT = "inactive_account"
    REFERENTIAL_CONFLICT = "referential_conflict"
    INVALID_REFERENCE = "invalid_reference"


class InventoryError(Exception):
    """Base class for every recoverable application error."""
    kind = None
    default_message = "Request could not be completed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'message': self.message}


class ValidationError(InventoryError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(', '.join(self.messages))


class NotFound(InventoryError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity, identifier=None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class InvalidCredentials(InventoryError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class LockedAccount(InventoryError):
    kind = ErrorKind.LOCKED_ACCOUNT
    default_message = ("Account is temporarily locked due to too many failed "
                       "login attempts. Please try again later.")

    def __init__(self, lock_until=None):
        self.lock_until = lock_until
        super().__init__()


class InactiveAccount(InventoryError):
    kind = ErrorKind.INACTIVE_ACCOUNT
    default_message = "Account is deactivated. Please contact administrator."


class ReferentialConflict(InventoryError):
    kind = ErrorKind.REFERENTIAL_CONFLICT

    def __init__(self, count):
        self.count = count
        super().__init__(
            f"Cannot delete supplier. {count} product(s) are associated with this supplier."
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['count'] = self.count
        return data


class InvalidReference(InventoryError):
    kind = ErrorKind.INVALID_REFERENCE

    def __init__(self, supplier_id=None):
        self.supplier_id = supplier_id
        super().__init__("Selected supplier does not exist")
