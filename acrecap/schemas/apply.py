from __future__ import annotations

import re
from enum import IntEnum

from pydantic import BaseModel, Field, field_validator

from acrecap.schemas.submissions import ApplicantEmail, SubmissionRead

MOBILE_PATTERN = r"^\+?\d{10,15}$"
PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


def normalize_document_number(value: str | None) -> str:
    """Upper-case and drop all whitespace, as PAN and GST numbers are typed loosely."""
    return re.sub(r"\s+", "", value or "").upper()


class ApplyStep(IntEnum):
    BASIC = 1
    BUSINESS = 2
    LOAN = 3
    DOCUMENTS = 4


class BasicDetailsStep(BaseModel):
    name: str = Field(min_length=2)
    mobile: str = Field(pattern=MOBILE_PATTERN)
    email: ApplicantEmail
    city: str = Field(min_length=2)


class BusinessInfoStep(BaseModel):
    business_name: str = Field(min_length=2)
    business_type: str = Field(min_length=2)
    annual_turnover: str = Field(min_length=1)
    years_in_business: str = Field(min_length=1)


class LoanDetailsStep(BaseModel):
    loan_amount: str = Field(min_length=1)
    tenure: str = Field(min_length=1)
    loan_purpose: str = Field(min_length=2)


class DocumentsStep(BaseModel):
    pan_number: str | None = None
    gst_number: str | None = None

    @field_validator("pan_number")
    @classmethod
    def _check_pan(cls, value: str | None) -> str | None:
        value = normalize_document_number(value) or None
        if value and not PAN_RE.match(value):
            raise ValueError("Invalid PAN format")
        return value

    @field_validator("gst_number")
    @classmethod
    def _check_gst(cls, value: str | None) -> str | None:
        value = normalize_document_number(value) or None
        if value and not GSTIN_RE.match(value):
            raise ValueError("Invalid GST format")
        return value


STEP_SCHEMAS: dict[ApplyStep, type[BaseModel]] = {
    ApplyStep.BASIC: BasicDetailsStep,
    ApplyStep.BUSINESS: BusinessInfoStep,
    ApplyStep.LOAN: LoanDetailsStep,
    ApplyStep.DOCUMENTS: DocumentsStep,
}


class ApplyFormData(BaseModel):
    """Everything the four wizard steps collect. Missing values arrive as ``""``."""

    name: str = ""
    mobile: str = ""
    email: str = ""
    city: str = ""
    business_name: str = ""
    business_type: str = ""
    annual_turnover: str = ""
    years_in_business: str = ""
    loan_amount: str = ""
    loan_purpose: str = ""
    tenure: str = ""
    pan_number: str | None = None
    gst_number: str | None = None


class ApplyStepResult(BaseModel):
    step: int
    valid: bool
    errors: dict[str, list[str]] = Field(default_factory=dict)
    next_step: int | None = None


class ApplySubmitResponse(BaseModel):
    submission: SubmissionRead
    redirect_to: str
