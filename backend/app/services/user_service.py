"""
User record service.

Creates, reads and updates users. Every write goes through the injected
validator first; uniqueness of email and userIdentification is checked
against stored users and finally enforced by the table's unique indexes.
"""

import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.errors import (
    UniquenessViolationError,
    UserNotFoundError,
    UserValidationError,
)
from app.domain.user_rules import (
    ErrorKind,
    FieldError,
    UserValidator,
    structural_error,
)
from app.domain.user_schema import TokenEntry, UserCandidate, UserRecord
from app.models.user import User

logger = logging.getLogger(__name__)

# Candidate fields persisted as JSON documents
_DOCUMENT_FIELDS = {"payment_information", "security_questions", "interests", "tokens"}
# Read-model fields the caller can't change
_SYSTEM_FIELDS = {"user_id", "created_at", "updated_at"}
# Attribute name -> payload key
_PAYLOAD_KEYS = {
    name: field.alias or name for name, field in UserCandidate.model_fields.items()
}


class UserService:
    """Service for managing user records."""

    def __init__(self, db: Session, validator: Optional[UserValidator] = None):
        self.db = db
        self.validator = validator or UserValidator()

    def create_user(self, payload: Mapping[str, Any]) -> User:
        """
        Validate and store a new user.

        Args:
            payload: camelCase user payload, confirmPassword included

        Returns:
            Created User with user_id and timestamps populated

        Raises:
            UserValidationError: If any field is missing, mistyped or invalid
            UniquenessViolationError: If email or userIdentification is taken
        """
        candidate = self._validate(payload, "[CREATE_USER]")
        self._check_unique(candidate, "[CREATE_USER]")

        user = User()
        _apply_candidate(user, candidate)
        self.db.add(user)
        self._commit("[CREATE_USER]")
        self.db.refresh(user)

        logger.info(f"[CREATE_USER] Created user {user.user_id}")
        return user

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Find a user by email, ignoring case and surrounding whitespace."""
        normalized = email.strip().lower()
        return self.db.query(User).filter(User.email == normalized).first()

    def update_user(self, user_id: UUID, changes: Mapping[str, Any]) -> User:
        """
        Apply changes to a stored user and re-validate the whole record.

        Changes use the same keys as the create payload; snake_case names
        are accepted too. A new password must come with a matching
        confirmPassword; otherwise the stored password is used for the
        confirmation check.

        Args:
            user_id: User ID
            changes: fields to replace

        Returns:
            Updated User

        Raises:
            UserNotFoundError: If the user doesn't exist
            UserValidationError: If the merged record is invalid
            UniquenessViolationError: If the new email or userIdentification
                belongs to another user
        """
        user = self._get_or_raise(user_id)
        changes = _payload_keys(changes)

        payload = self.to_record(user).model_dump(by_alias=True, exclude=_SYSTEM_FIELDS)
        if "password" not in changes:
            payload["confirmPassword"] = user.password
        payload.update(changes)

        candidate = self._validate(payload, "[UPDATE_USER]")
        self._check_unique(candidate, "[UPDATE_USER]", exclude_user_id=user.user_id)

        _apply_candidate(user, candidate)
        self._commit("[UPDATE_USER]")
        self.db.refresh(user)

        logger.info(f"[UPDATE_USER] Updated user {user.user_id}: {sorted(changes)}")
        return user

    def add_token(self, user_id: UUID, token: str) -> User:
        """
        Append a token to the user's token list.

        Raises:
            UserNotFoundError: If the user doesn't exist
            UserValidationError: If the token is blank or not a string
        """
        user = self._get_or_raise(user_id)
        tokens = list(user.tokens or [])

        try:
            entry = TokenEntry.model_validate({"token": token})
        except PydanticValidationError as exc:
            position = ("tokens", len(tokens))
            errors = [
                structural_error({**error, "loc": position + tuple(error["loc"])})
                for error in exc.errors()
            ]
            logger.warning(f"[TOKENS] Rejected token for user {user_id}")
            raise UserValidationError(errors)

        # Reassign so the JSON column is marked dirty
        user.tokens = tokens + [entry.model_dump()]
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"[TOKENS] User {user_id} now has {len(user.tokens)} token(s)")
        return user

    def remove_token(self, user_id: UUID, token: str) -> User:
        """Remove every entry matching token. Unknown tokens are ignored."""
        user = self._get_or_raise(user_id)
        remaining = [entry for entry in user.tokens or [] if entry.get("token") != token]

        if len(remaining) != len(user.tokens or []):
            user.tokens = remaining
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"[TOKENS] Removed token from user {user_id}")

        return user

    def to_record(self, user: User) -> UserRecord:
        return UserRecord.model_validate(user)

    def _get_or_raise(self, user_id: UUID) -> User:
        user = self.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    def _validate(self, payload: Mapping[str, Any], tag: str) -> UserCandidate:
        result = self.validator.validate(payload)
        if not result.ok:
            logger.warning(f"{tag} Validation failed for fields: {_fields(result.errors)}")
            raise UserValidationError(result.errors)
        return result.candidate

    def _check_unique(
        self,
        candidate: UserCandidate,
        tag: str,
        exclude_user_id: Optional[UUID] = None,
    ) -> None:
        errors = []

        query = self.db.query(User.user_id).filter(User.email == candidate.email)
        if exclude_user_id is not None:
            query = query.filter(User.user_id != exclude_user_id)
        if query.first():
            errors.append(_uniqueness_error("email", "Email already registered"))

        query = self.db.query(User.user_id).filter(
            User.user_identification == candidate.user_identification
        )
        if exclude_user_id is not None:
            query = query.filter(User.user_id != exclude_user_id)
        if query.first():
            errors.append(
                _uniqueness_error(
                    "userIdentification", "User identification already registered"
                )
            )

        if errors:
            logger.warning(f"{tag} Duplicate values for fields: {_fields(errors)}")
            raise UniquenessViolationError(errors)

    def _commit(self, tag: str) -> None:
        """Commit, turning a unique index violation into a uniqueness error."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent write of the same key
            self.db.rollback()
            logger.warning(f"{tag} Unique constraint rejected the write")
            if "user_identification" in str(exc.orig):
                error = _uniqueness_error(
                    "userIdentification", "User identification already registered"
                )
            else:
                error = _uniqueness_error("email", "Email already registered")
            raise UniquenessViolationError([error])


def _apply_candidate(user: User, candidate: UserCandidate) -> None:
    values = candidate.model_dump(exclude={"confirm_password"})
    # JSON columns need ISO dates rather than date objects
    values.update(candidate.model_dump(mode="json", include=_DOCUMENT_FIELDS))
    for name, value in values.items():
        setattr(user, name, value)


def _uniqueness_error(field: str, message: str) -> FieldError:
    return FieldError(field=field, kind=ErrorKind.UNIQUENESS_VIOLATION, message=message)


def _fields(errors: List[FieldError]) -> List[str]:
    return [error.field for error in errors]


def _payload_keys(changes: Mapping[str, Any]) -> dict:
    """Rename snake_case change keys to the payload keys they stand for."""
    return {_PAYLOAD_KEYS.get(key, key): value for key, value in changes.items()}
