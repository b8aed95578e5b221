from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ItemRequestCreate(BaseModel):
    description: str = Field(min_length=1)
    image_url: Optional[str] = None


class VendorResponseCreate(BaseModel):
    request_id: int
    message: str = Field(min_length=1)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None


class StoreUpsert(BaseModel):
    store_name: str = Field(min_length=1)
    address: str = Field(min_length=1)


class ResponseCard(BaseModel):
    """One display record of the landing page feed.

    ``rating``, ``distance`` and ``response_time`` are placeholder demo values
    until real reputation and location data exist; they are None when the
    mock fields are switched off.
    """

    name: str
    avatar: str
    price: str
    stock: str
    description: str
    image: str
    location: str
    rating: Optional[float] = None
    distance: Optional[str] = None
    response_time: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    name: str
    password: str
    is_buyer: bool = False
    is_vendor: bool = False


class UserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    is_buyer: bool
    is_vendor: bool

    model_config = ConfigDict(from_attributes=True)


class LoginData(BaseModel):
    email: EmailStr
    password: str

    role: Literal["buyer", "vendor"]
