"""
User record errors.

Services raise these; each validation error carries the structured list of
field errors that caused it.
"""

from typing import List

from app.domain.user_rules import FieldError


class UserError(ValueError):
    """Base class for user record errors."""


class UserValidationError(UserError):
    """Raised when a payload fails validation. Nothing is persisted."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        message = self.errors[0].message if self.errors else "Invalid user"
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return [error.field for error in self.errors]


class UniquenessViolationError(UserValidationError):
    """Raised when email or userIdentification is already taken."""


class UserNotFoundError(UserError):
    """Raised when no user exists for the given id."""

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")
