from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


EMAIL_MAX_LENGTH = 160


def _check_email(value: str) -> str:
    """Check the address format but keep it exactly as the applicant typed it."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return value


ApplicantEmail = Annotated[str, AfterValidator(_check_email)]


class SubmissionCreate(BaseModel):
    """Public application payload.

    ``user_id`` and ``status`` are accepted for compatibility with older
    clients but are never trusted: the owner comes from the caller's identity
    and every new submission starts as ``pending``.
    """

    user_id: UUID | None = None

    name: str = Field(min_length=1, max_length=120)
    mobile: str = Field(min_length=8, max_length=20)
    email: ApplicantEmail
    city: str = Field(min_length=1, max_length=120)

    business_name: str = Field(min_length=1, max_length=160)
    business_type: str = Field(min_length=1, max_length=160)
    annual_turnover: str = Field(min_length=1, max_length=160)
    years_in_business: str = Field(min_length=1, max_length=60)

    loan_amount: str = Field(min_length=1, max_length=120)
    loan_purpose: str = Field(min_length=1, max_length=200)
    tenure: str = Field(min_length=1, max_length=60)

    pan_number: str | None = None
    gst_number: str | None = None

    status: SubmissionStatus = SubmissionStatus.PENDING

    @field_validator("email")
    @classmethod
    def _email_length(cls, value: str) -> str:
        if len(value) > EMAIL_MAX_LENGTH:
            raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
        return value

    def stored_fields(self) -> dict:
        return self.model_dump(exclude={"user_id", "status"})


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user_id: UUID | None = None

    name: str
    mobile: str
    email: str
    city: str

    business_name: str
    business_type: str
    annual_turnover: str
    years_in_business: str

    loan_amount: str
    loan_purpose: str
    tenure: str

    pan_number: str | None = None
    gst_number: str | None = None

    status: SubmissionStatus


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus


class SubmissionResponse(BaseModel):
    submission: SubmissionRead


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionRead]
