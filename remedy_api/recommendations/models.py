from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NOT_SPECIFIED = "Not specified"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(str, Enum):
    mild = "mild"
    moderate = "moderate"
    severe = "severe"
    acute = "acute"


class SymptomQuery(_CamelModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    symptoms: str = Field(..., min_length=1)
    severity: Severity | None = None
    existing_conditions: str | None = None
    additional_info: str | None = None
    location: str | None = None
    age: str = NOT_SPECIFIED
    gender: str = NOT_SPECIFIED

    @field_validator("severity", mode="before")
    @classmethod
    def normalise_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("existing_conditions", "additional_info", "location", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("age", "gender", mode="before")
    @classmethod
    def default_when_blank(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return NOT_SPECIFIED
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def wants_stores(self) -> bool:
        return bool(self.location and self.location.strip())


class RemedyRecommendation(_CamelModel):
    model_config = ConfigDict(frozen=True)

    medicine_name: str
    potency: str
    dosage: str
    description: str
    benefits: list[str]
    considerations: list[str]
    purchase_url: str


class Coordinates(BaseModel):
    lat: float
    lng: float


class StoreCandidate(_CamelModel):
    name: str
    address: str
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    open_now: bool | None = None
    phone_number: str | None = None
    website: str | None = None
    distance_km: float | None = Field(default=None, ge=0.0)
    coordinates: Coordinates | None = None
    maps_url: str | None = None


class RecommendationResponse(_CamelModel):
    recommendations: list[RemedyRecommendation] = Field(..., min_length=3, max_length=5)
    local_stores: list[StoreCandidate] | None = None


class ErrorResponse(BaseModel):
    error: str
