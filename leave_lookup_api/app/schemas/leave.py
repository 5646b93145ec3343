"""
Pydantic schemas for leave lookups.

``LeaveQuery`` describes the body of ``POST /api/leave``.  The accepted
language is deliberately strict: a service code is 8 to 20 ASCII letters
or digits and an id number is exactly ten ASCII digits.  Values of any
other type are rejected rather than coerced.

``LeaveRead`` is the public view of a record.  It has no id number
field at all, so a record can only leave the service in redacted form.
Wire names are camelCase; attribute names stay snake_case.
"""

import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import ValidationError


SERVICE_CODE_PATTERN = re.compile(r"[A-Za-z0-9]{8,20}")
ID_NUMBER_PATTERN = re.compile(r"[0-9]{10}")


class LeaveQuery(BaseModel):
    """Body of a single leave lookup."""

    model_config = ConfigDict(extra="ignore")

    service_code: StrictStr = Field(..., alias="serviceCode", examples=["GSL25021372778"])
    id_number: StrictStr = Field(..., alias="idNumber", examples=["1088576044"])
    captcha_token: Optional[StrictStr] = Field(
        None,
        alias="captchaToken",
        description="reCAPTCHA token; required only when verification is enabled",
    )

    @field_validator("service_code")
    @classmethod
    def validate_service_code(cls, v: str) -> str:
        if not SERVICE_CODE_PATTERN.fullmatch(v):
            raise ValueError("serviceCode must be 8-20 letters or digits")
        return v

    @field_validator("id_number")
    @classmethod
    def validate_id_number(cls, v: str) -> str:
        if not ID_NUMBER_PATTERN.fullmatch(v):
            raise ValueError("idNumber must be exactly 10 digits")
        return v


def validate_leave_query(payload: Any) -> LeaveQuery:
    """Validate a decoded request body.

    Raises ``ValidationError`` with a human readable message when the
    payload is not an object or any field is malformed.  Callers must
    not search the store when this raises.
    """
    if not isinstance(payload, dict):
        raise ValidationError()
    try:
        return LeaveQuery.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError() from e


class LeaveRead(BaseModel):
    """Public, redacted view of a leave record."""

    model_config = ConfigDict(populate_by_name=True)

    service_code: str = Field(..., alias="serviceCode")
    name: str
    report_date: str = Field(..., alias="reportDate")
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    doctor_name: str = Field(..., alias="doctorName")
    job_title: str = Field(..., alias="jobTitle")
    days: int


class LeaveLookupResponse(BaseModel):
    success: bool = True
    record: LeaveRead


class LeaveListResponse(BaseModel):
    success: bool = True
    leaves: List[LeaveRead]


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
