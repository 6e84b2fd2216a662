from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from backoffice.schemas.address import AddressRead


class GuestCustomerCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone_number: str = Field(min_length=7, max_length=20)
    acquisition_campaign_id: Optional[str] = Field(default=None, max_length=64)


class CustomerCreate(GuestCustomerCreate):
    user_id: Optional[str] = Field(default=None, max_length=64)
    is_guest: bool = False

    @model_validator(mode="after")
    def _guest_has_no_user(self) -> "CustomerCreate":
        if self.is_guest and self.user_id:
            raise ValueError("Guest customers cannot be linked to a user")
        return self


class CustomerLookupCreate(GuestCustomerCreate):
    """Payload of get-or-create: never links a user, guest flag is caller's choice."""

    is_guest: bool = False


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(default=None, min_length=7, max_length=20)

    @field_validator("first_name", "last_name", "email", "phone_number")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class ConvertToRegistered(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: Optional[int] = None
    user_id: Optional[str] = None
    first_name: str
    last_name: str
    email: str
    phone_number: str
    is_guest: bool
    acquisition_campaign_id: Optional[str] = None
    created_at: Optional[datetime] = None


class CustomerWithAddresses(CustomerRead):
    addresses: list[AddressRead]


class CustomerStats(BaseModel):
    customer: CustomerRead
    address_count: int
    has_default_address: bool


class CustomerGetOrCreateResult(BaseModel):
    customer: CustomerRead
    created: bool
