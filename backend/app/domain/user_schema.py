"""
User payload schemas.

`UserCandidate` describes the shape of an incoming user payload: which fields
exist, their types, and which are required. Content rules (email syntax,
password safety, lengths, ...) live in `app.domain.user_rules` and run on the
parsed candidate.

Payloads use camelCase keys; attributes are snake_case.
"""

from datetime import date, datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel

# Blank required text counts as absent.
RequiredText = Annotated[str, StringConstraints(min_length=1)]
TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
EmailText = Annotated[
    str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)
]


def _date_part(value):
    """Reduce a datetime, or an ISO datetime string such as a serialized JS Date, to its date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return value
    return value


PayloadDate = Annotated[date, BeforeValidator(_date_part)]


class PayloadModel(BaseModel):
    """Base for models read from camelCase payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class PaymentInformation(PayloadModel):
    """Card details stored inline on the user."""

    card_number: RequiredText
    card_holder_name: RequiredText
    expiration_date: PayloadDate
    cvv: RequiredText


class SecurityQuestions(PayloadModel):
    """Two account recovery question/answer pairs."""

    question1: RequiredText
    answer1: RequiredText
    question2: RequiredText
    answer2: RequiredText


class TokenEntry(PayloadModel):
    """One entry of the user's ordered token list."""

    token: RequiredText


class UserCandidate(PayloadModel):
    """A user payload that passed the structural checks."""

    first_name: TrimmedText
    last_name: TrimmedText
    email: EmailText
    password: TrimmedText
    confirm_password: RequiredText
    dob: PayloadDate
    gender: RequiredText
    phone_number: RequiredText
    address: RequiredText
    profile_picture: Optional[str] = None
    payment_information: PaymentInformation
    security_questions: SecurityQuestions
    terms_and_conditions: StrictBool
    privacy_policy: StrictBool
    interests: List[str] = Field(default_factory=list)
    user_identification: RequiredText
    additional_info: Optional[str] = None
    is_admin: StrictBool = False
    tokens: List[TokenEntry] = Field(default_factory=list)

    @field_validator("interests", "tokens", mode="before")
    @classmethod
    def null_list_is_empty(cls, value):
        return [] if value is None else value

    @field_validator("is_admin", mode="before")
    @classmethod
    def null_flag_is_false(cls, value):
        return False if value is None else value


class UserRecord(PayloadModel):
    """A stored user as read back from the database."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    first_name: str
    last_name: str
    email: str
    password: str
    dob: PayloadDate
    gender: str
    phone_number: str
    address: str
    profile_picture: Optional[str] = None
    payment_information: PaymentInformation
    security_questions: SecurityQuestions
    terms_and_conditions: bool
    privacy_policy: bool
    interests: List[str] = Field(default_factory=list)
    user_identification: str
    additional_info: Optional[str] = None
    is_admin: bool = False
    tokens: List[TokenEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
