from __future__ import annotations

import re
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

EMAIL_RE = re.compile(r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,3})+$")


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please add a valid email")
    return value


# limite di bcrypt, in byte UTF-8 (non caratteri)
PASSWORD_MAX_BYTES = 72


def _check_password(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


class PartialUpdate(BaseModel):
    """
    Base per gli aggiornamenti parziali.

    Vengono applicati solo i campi presenti nel body (exclude_unset), quindi
    0 / False / "" sono valori legittimi. I campi in NON_NULLABLE non accettano null esplicito.
    """

    NON_NULLABLE: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        for name in self.NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str
    imageUrl: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _trim_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class CategoryUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Tuple[str, ...]] = ("name", "description")

    name: Optional[str] = None
    description: Optional[str] = None
    imageUrl: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _trim_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str
    price: float = Field(default=0, ge=0)
    category: str = Field(min_length=1)
    brand: str
    imageUrl: str
    countInStock: int = Field(default=0, ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    numReviews: int = Field(default=0, ge=0)
    featured: bool = False


class ProductUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Tuple[str, ...]] = (
        "name",
        "description",
        "price",
        "category",
        "brand",
        "imageUrl",
        "countInStock",
        "rating",
        "numReviews",
        "featured",
    )

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    brand: Optional[str] = None
    imageUrl: Optional[str] = None
    countInStock: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    numReviews: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    password: str = Field(min_length=6)
    phoneNumber: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)

    @model_validator(mode="after")
    def _needs_contact(self):
        if not self.email and not self.phoneNumber:
            raise ValueError("email or phoneNumber is required")
        return self


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return v.strip().lower()


class EmailRequest(BaseModel):
    email: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    email: str
    otp: str
    password: str = Field(min_length=6)

    @field_validator("password")
    @classmethod
    def _password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)


class ProfileUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Tuple[str, ...]] = ("name", "password")

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class CartAddRequest(BaseModel):
    productId: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class CartUpdateRequest(BaseModel):
    quantity: int = Field(ge=0)
