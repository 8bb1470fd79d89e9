"""Data model for quotations and project records.

Attributes are snake_case in Python; the JSON form written to storage and to
exports uses camelCase keys (``wattPeak``, ``createdAt`` ...).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError
from pydantic.alias_generators import to_camel

from constants import DEFAULT_BASE_PRICE_PER_KW, DEFAULT_GST_PERCENTAGE


class Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"


class PersonalDetails(Model):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: EmailStr
    address: str = Field(..., min_length=1)


class SystemConfiguration(Model):
    model_config = ConfigDict(frozen=True)

    make: str = Field(..., min_length=1, description="Panel manufacturer")
    watt_peak: float = Field(..., gt=0, allow_inf_nan=False, description="Watts per panel")
    number_of_panels: int = Field(..., gt=0)
    base_price_per_kw: float = Field(..., gt=0, allow_inf_nan=False)
    gst_percentage: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    cleaning_charges: float = Field(0, ge=0, allow_inf_nan=False)
    subsidy: float = Field(0, ge=0, allow_inf_nan=False)


class Calculations(Model):
    model_config = ConfigDict(frozen=True)

    system_size: float
    total_base_price: int
    gst_amount: int
    total_payable_amount: int


class Project(Model):
    model_config = ConfigDict(frozen=True)

    id: str
    personal_details: PersonalDetails
    system_configuration: SystemConfiguration
    calculations: Calculations
    images: Tuple[str, ...] = ()
    status: ProjectStatus = ProjectStatus.DRAFT
    # Kept as the stored ISO string; bad values only drop out of monthly bucketing
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AppSettings(Model):
    model_config = ConfigDict(frozen=True)

    default_gst_percentage: float = Field(DEFAULT_GST_PERCENTAGE, ge=0, le=100, allow_inf_nan=False)
    default_base_price_per_kw: float = Field(DEFAULT_BASE_PRICE_PER_KW, gt=0, allow_inf_nan=False)


class MonthlyDatum(Model):
    month: str
    income: int = 0
    projects: int = 0


class DashboardStats(Model):
    total_income: int = 0
    total_kw_installed: float = 0
    total_projects: int = 0
    monthly_data: List[MonthlyDatum] = Field(default_factory=list)


# ============================================================================
# VALIDATION
# ============================================================================

FIELD_LABELS = {
    "name": "Name",
    "phone": "Phone",
    "email": "Email",
    "address": "Address",
    "make": "Make",
    "watt_peak": "Watt Peak",
    "number_of_panels": "Number of panels",
    "base_price_per_kw": "Base price",
    "gst_percentage": "GST percentage",
    "cleaning_charges": "Cleaning charges",
    "subsidy": "Subsidy",
    "default_gst_percentage": "GST percentage",
    "default_base_price_per_kw": "Base price",
}


@dataclass
class ValidationResult:
    """Outcome of validating one form step."""

    value: Optional[BaseModel] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors


def _field_name(model: Type[BaseModel], loc: Any) -> str:
    for name, info in model.model_fields.items():
        if loc in (name, info.alias):
            return name
    return str(loc)


def _error_message(name: str, error: dict) -> str:
    label = FIELD_LABELS.get(name, name)
    kind = error["type"]
    if kind == "missing" or kind == "string_too_short":
        return f"{label} is required"
    if kind == "value_error" and name == "email":
        return "Invalid email"
    if kind == "greater_than":
        return f"{label} must be positive"
    if kind == "greater_than_equal":
        return f"{label} cannot be negative"
    if kind == "less_than_equal":
        return f"{label} cannot exceed {error['ctx']['le']}"
    if kind == "finite_number":
        return f"{label} must be a finite number"
    return error["msg"]


def validate(model: Type[BaseModel], data: dict) -> ValidationResult:
    """Validate raw form data against a step model.

    Only the first error per field is reported.
    """
    try:
        return ValidationResult(value=model.model_validate(data))
    except ValidationError as exc:
        errors = {}
        for error in exc.errors():
            name = _field_name(model, error["loc"][0]) if error["loc"] else "__all__"
            errors.setdefault(name, _error_message(name, error))
        return ValidationResult(errors=errors)


def validate_personal_details(data: dict) -> ValidationResult:
    return validate(PersonalDetails, data)


def validate_system_configuration(data: dict) -> ValidationResult:
    return validate(SystemConfiguration, data)


def validate_settings(data: dict) -> ValidationResult:
    return validate(AppSettings, data)
