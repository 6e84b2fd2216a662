from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.core.config import DEFAULT_ADDRESS_COUNTRY


class AddressFields(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=7, max_length=20)
    street_address: str = Field(min_length=1)
    apartment: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = DEFAULT_ADDRESS_COUNTRY
    is_default: bool = False


class AddressCreate(AddressFields):
    customer_id: int


class AddressUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, min_length=7, max_length=20)
    street_address: Optional[str] = Field(default=None, min_length=1)
    apartment: Optional[str] = None
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, min_length=1)
    postal_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    country: Optional[str] = Field(default=None, min_length=1)
    is_default: Optional[bool] = None

    @field_validator(
        "first_name",
        "last_name",
        "phone_number",
        "street_address",
        "city",
        "state",
        "postal_code",
        "country",
        "is_default",
    )
    @classmethod
    def _not_null(cls, value):
        # Omit a field to keep it; only apartment can be cleared.
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AddressRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    first_name: str
    last_name: str
    phone_number: str
    street_address: str
    apartment: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AddressStats(BaseModel):
    total_addresses: int
    has_default_address: bool
    default_address_id: Optional[int] = None
    addresses_by_country: dict[str, int]
