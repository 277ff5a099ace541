"""
Customer Domain Models

Profiles and saved delivery addresses of registered customers. A
profile row shares its id with the Supabase Auth user.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class CustomerProfile(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def full_name(self) -> Optional[str]:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or None


class CustomerProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)


class CustomerAddress(BaseModel):
    """
    A saved delivery address

    At most one address per customer has is_default set; saving a new
    default clears the flag on the others.
    """
    id: str
    user_id: str
    label: Optional[str] = None
    street: str
    apt: Optional[str] = None
    city: str
    state: str
    zip: str
    is_default: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AddressCreate(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    street: str = Field(..., min_length=1)
    apt: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=3)
    is_default: bool = False


class AddressUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    street: Optional[str] = Field(None, min_length=1)
    apt: Optional[str] = None
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    zip: Optional[str] = Field(None, min_length=3)
    is_default: Optional[bool] = None
