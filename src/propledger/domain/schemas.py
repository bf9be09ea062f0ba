"""Input schemas for utility bills and meter readings.

Structural checks run here, before any domain guard sees the data: a bill
with a non-positive amount or a due date before its bill date never reaches
the lifecycle, and a negative reading never reaches the monotonic check.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from propledger.domain.entities import UtilityImportMethod, UtilitySplitMethod
from propledger.domain.errors import CreateBillError, InvalidInputError, ReadingError
from propledger.domain.money import to_money


class CreateUtilityBillInput(BaseModel):
    """Validated input for creating a utility bill."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    organization_id: str = Field(min_length=1)
    property_id: str = Field(min_length=1)
    provider_name: str = Field(min_length=1)
    total_amount: Decimal = Field(gt=0)
    bill_date: date
    due_date: date
    split_method: UtilitySplitMethod
    import_method: UtilityImportMethod = UtilityImportMethod.MANUAL_ENTRY
    file_url: Optional[HttpUrl] = None
    ocr_confidence: Optional[Decimal] = Field(default=None, ge=0, le=1)

    @field_validator("total_amount")
    @classmethod
    def _round_to_cents(cls, value: Decimal) -> Decimal:
        value = to_money(value)
        if value <= 0:
            raise ValueError("Bill amount must be positive")
        return value

    @model_validator(mode="after")
    def _due_after_bill_date(self) -> "CreateUtilityBillInput":
        if self.due_date < self.bill_date:
            raise ValueError("Due date must be on or after bill date")
        return self


class CreateUtilityReadingInput(BaseModel):
    """Validated input for recording a meter reading."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    lease_utility_id: str = Field(min_length=1)
    reading_value: Decimal = Field(ge=0)
    reading_date: Optional[date] = None


def _issues(error: PydanticValidationError) -> list[str]:
    issues = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        issues.append(f"{location}: {message}" if location else message)
    return issues


def _bill_error_code(error: PydanticValidationError) -> CreateBillError:
    first = error.errors()[0]
    fields = first["loc"]
    if "total_amount" in fields:
        return CreateBillError.INVALID_AMOUNT
    if not fields or "due_date" in fields or "bill_date" in fields:
        return CreateBillError.INVALID_DATES
    return CreateBillError.INVALID_INPUT


def parse_create_bill_input(data: Mapping[str, Any]) -> CreateUtilityBillInput:
    """Validate raw bill input.

    Raises:
        InvalidInputError: With ``code`` set to a CreateBillError
    """
    try:
        return CreateUtilityBillInput.model_validate(dict(data))
    except PydanticValidationError as e:
        issues = _issues(e)
        raise InvalidInputError(issues[0], issues=issues, code=_bill_error_code(e)) from e


def parse_create_reading_input(data: Mapping[str, Any]) -> CreateUtilityReadingInput:
    """Validate raw reading input.

    Raises:
        InvalidInputError: With ``code`` set to ReadingError.INVALID_INPUT
    """
    try:
        return CreateUtilityReadingInput.model_validate(dict(data))
    except PydanticValidationError as e:
        issues = _issues(e)
        raise InvalidInputError(issues[0], issues=issues, code=ReadingError.INVALID_INPUT) from e
