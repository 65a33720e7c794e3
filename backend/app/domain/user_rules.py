"""
User validation rules.

Validation runs in two passes over a candidate payload:

1. Structure: the payload is parsed into a `UserCandidate`. Absent or blank
   required fields are reported as `missing_field`, values of the wrong type
   as `type_mismatch`.
2. Rules: every entry of `USER_RULES` is checked against the whole parsed
   candidate. Failures are reported as `constraint_violation` with the rule's
   message.

The predicates are plain functions of their inputs so they can be reused
outside the pipeline. A failing payload is rejected as a whole; the result
lists every field error that was found.
"""

import re
from enum import Enum
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Sequence

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.domain.user_schema import UserCandidate

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
CARD_NUMBER_LENGTH = 16
CVV_LENGTHS = (3, 4)
GENDERS = ("male", "female", "other")

_TEN_DIGITS = re.compile(r"[0-9]{10}")


class ErrorKind(str, Enum):
    """Why a field was rejected."""

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    CONSTRAINT_VIOLATION = "constraint_violation"
    UNIQUENESS_VIOLATION = "uniqueness_violation"


class FieldError(BaseModel):
    """A single rejected field, addressed by its payload path."""

    field: str
    kind: ErrorKind
    message: str


class ValidationResult:
    """Outcome of validating one payload."""

    def __init__(
        self,
        candidate: Optional[UserCandidate] = None,
        errors: Optional[List[FieldError]] = None,
    ):
        self.candidate = candidate
        self.errors = errors or []

    @property
    def ok(self) -> bool:
        return self.candidate is not None and not self.errors

    def messages(self) -> List[str]:
        return [error.message for error in self.errors]


# Predicates


def email_is_valid(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def password_is_safe(value: str) -> bool:
    return "password" not in value.lower()


def password_long_enough(value: str) -> bool:
    return len(value) >= PASSWORD_MIN_LENGTH


def confirm_password_matches(value: str, password: str) -> bool:
    return value == password


def phone_number_is_ten_digits(value: str) -> bool:
    return _TEN_DIGITS.fullmatch(value) is not None


def card_number_length(value: str) -> bool:
    return len(value) == CARD_NUMBER_LENGTH


def cvv_length(value: str) -> bool:
    return len(value) in CVV_LENGTHS


def gender_is_valid(value: str) -> bool:
    return value in GENDERS


def name_within_limit(value: str) -> bool:
    return len(value) <= NAME_MAX_LENGTH


# Rule table


class Rule(NamedTuple):
    """A content check on a parsed candidate."""

    field: str
    check: Callable[[UserCandidate], bool]
    message: str


USER_RULES: List[Rule] = [
    Rule(
        "firstName",
        lambda user: name_within_limit(user.first_name),
        f"First name should be at most {NAME_MAX_LENGTH} characters",
    ),
    Rule(
        "lastName",
        lambda user: name_within_limit(user.last_name),
        f"Last name should be at most {NAME_MAX_LENGTH} characters",
    ),
    Rule("email", lambda user: email_is_valid(user.email), "Invalid email address"),
    Rule(
        "password",
        lambda user: password_long_enough(user.password),
        f"Password should be at least {PASSWORD_MIN_LENGTH} characters",
    ),
    Rule(
        "password",
        lambda user: password_is_safe(user.password),
        'Password should not contain "password"',
    ),
    Rule(
        "confirmPassword",
        lambda user: confirm_password_matches(user.confirm_password, user.password),
        "Passwords do not match",
    ),
    Rule(
        "gender",
        lambda user: gender_is_valid(user.gender),
        "Gender should be one of: " + ", ".join(GENDERS),
    ),
    Rule(
        "phoneNumber",
        lambda user: phone_number_is_ten_digits(user.phone_number),
        "Phone number should be a 10-digit number",
    ),
    Rule(
        "paymentInformation.cardNumber",
        lambda user: card_number_length(user.payment_information.card_number),
        f"Card number should be {CARD_NUMBER_LENGTH} characters",
    ),
    Rule(
        "paymentInformation.cvv",
        lambda user: cvv_length(user.payment_information.cvv),
        "CVV should be 3 or 4 characters",
    ),
]


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc) or "user"


def structural_error(error: Mapping[str, Any]) -> FieldError:
    """Map one pydantic error onto the missing/type-mismatch taxonomy."""
    field = _field_path(error.get("loc", ()))
    # Blank text fails min_length=1; null stands for an absent value.
    if (
        error["type"] in ("missing", "string_too_short")
        or error.get("input", "") is None
    ):
        return FieldError(
            field=field,
            kind=ErrorKind.MISSING_FIELD,
            message=f"{field} is required",
        )
    return FieldError(
        field=field,
        kind=ErrorKind.TYPE_MISMATCH,
        message=f"{field}: {error['msg']}",
    )


class UserValidator:
    """
    Validates user payloads.

    Holds no per-call state; one instance can be shared between services and
    threads.
    """

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self.rules = list(USER_RULES if rules is None else rules)

    def validate(self, payload: Mapping[str, Any]) -> ValidationResult:
        """
        Validate a camelCase user payload.

        Args:
            payload: Mapping shaped like the user record

        Returns:
            ValidationResult with the parsed candidate on success, or every
            field error found
        """
        try:
            candidate = UserCandidate.model_validate(payload)
        except PydanticValidationError as exc:
            return ValidationResult(
                errors=[structural_error(error) for error in exc.errors()]
            )

        errors = [
            FieldError(
                field=rule.field,
                kind=ErrorKind.CONSTRAINT_VIOLATION,
                message=rule.message,
            )
            for rule in self.rules
            if not rule.check(candidate)
        ]
        if errors:
            return ValidationResult(errors=errors)

        return ValidationResult(candidate=candidate)


def validate_user(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a payload with the default rule table."""
    return UserValidator().validate(payload)
