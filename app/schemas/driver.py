# app/schemas/driver.py
from datetime import datetime, timezone
from typing import Annotated, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

BusYear = Annotated[int, Field(strict=True, ge=1900, le=2100)]


def require_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DriverBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    driver_name: str
    plate_number: str
    kir_expiration: datetime
    bus_year: BusYear

    @field_validator("driver_name", "plate_number")
    @classmethod
    def check_text(cls, value: str) -> str:
        return require_text(value)

    @field_validator("kir_expiration")
    @classmethod
    def check_kir_expiration(cls, value: datetime) -> datetime:
        return as_utc(value)


class DriverCreate(DriverBase):
    model_config = ConfigDict(extra="forbid")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class DriverUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    driver_name: Optional[str] = None
    plate_number: Optional[str] = None
    kir_expiration: Optional[datetime] = None
    bus_year: Optional[BusYear] = None

    @field_validator("driver_name", "plate_number")
    @classmethod
    def check_text(cls, value: Optional[str]) -> Optional[str]:
        return require_text(value)

    @field_validator("kir_expiration")
    @classmethod
    def check_kir_expiration(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


class DriverOut(DriverBase):
    id: str
    bus_year: int

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("kir_expiration")
    def serialize_kir_expiration(self, value: datetime) -> str:
        value = as_utc(value)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
