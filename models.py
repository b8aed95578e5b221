from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


REQUEST_OPEN = "open"
REQUEST_CLOSED = "closed"

RESPONSE_PENDING = "pending"
RESPONSE_ACCEPTED = "accepted"
RESPONSE_DECLINED = "declined"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    name: str
    is_buyer: bool = False
    is_vendor: bool = False
    password_hash: str


class ItemRequest(SQLModel, table=True):
    __tablename__ = "item_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    description: str
    image_url: Optional[str] = None
    status: str = Field(default=REQUEST_OPEN, index=True)  # open | closed
    created_at: datetime = Field(default_factory=_utcnow)


class VendorResponse(SQLModel, table=True):
    __tablename__ = "vendor_responses"

    id: Optional[int] = Field(default=None, primary_key=True)
    vendor_id: int = Field(foreign_key="users.id", index=True)
    request_id: int = Field(foreign_key="item_requests.id", index=True)

    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    message: str
    image_url: Optional[str] = None
    status: str = RESPONSE_PENDING  # pending | accepted | declined
    created_at: datetime = Field(default_factory=_utcnow)


class Store(SQLModel, table=True):
    __tablename__ = "stores"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Join key for vendor responses; not a foreign key, the join happens in feed.py
    vendor_id: int = Field(index=True, unique=True)

    store_name: str
    address: str
