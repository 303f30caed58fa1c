"""Product catalogue and user account records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from growbackend.models import NIL_UUID, ZERO_TIME, Record


def _wire(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"json": name})


@dataclass(kw_only=True)
class Product(Record):
    """A product described by a user, with its categories and specs as JSON text."""

    id: Optional[UUID] = _wire("id")
    user_id: UUID = _wire("userID", NIL_UUID)
    name: str = _wire("name", "")
    description: str = _wire("description", "")
    categories: str = _wire("categories", "")
    specs: str = _wire("specs", "")
    created_at: datetime = _wire("cat", ZERO_TIME)
    updated_at: datetime = _wire("uat", ZERO_TIME)


@dataclass(kw_only=True)
class Supplier(Record):
    """A shop that sells products."""

    id: Optional[UUID] = _wire("id")
    user_id: UUID = _wire("userID", NIL_UUID)
    name: str = _wire("name", "")
    url: str = _wire("url", "")
    description: str = _wire("description", "")
    locals: str = _wire("locals", "")
    created_at: datetime = _wire("cat", ZERO_TIME)
    updated_at: datetime = _wire("uat", ZERO_TIME)


@dataclass(kw_only=True)
class ProductSupplier(Record):
    """Where a product can be bought, and at what price."""

    id: Optional[UUID] = _wire("id")
    user_id: UUID = _wire("userID", NIL_UUID)
    product_id: UUID = _wire("productID", NIL_UUID)
    supplier_id: Optional[UUID] = _wire("supplierID")
    url: str = _wire("url", "")
    price: float = _wire("price", 0.0)
    created_at: datetime = _wire("cat", ZERO_TIME)
    updated_at: datetime = _wire("uat", ZERO_TIME)


@dataclass(kw_only=True)
class User(Record):
    """A user account."""

    id: Optional[UUID] = _wire("id")
    nickname: str = _wire("nickname", "")
    password: str = _wire("password", "")
    pic: Optional[str] = _wire("pic")
    liked: bool = _wire("liked", False)
    created_at: datetime = _wire("cat", ZERO_TIME)
    updated_at: datetime = _wire("uat", ZERO_TIME)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form; an unset picture and ``liked`` are left out."""
        data = super().to_dict()
        if self.pic is None:
            data.pop("pic")
        if not self.liked:
            data.pop("liked")
        return data