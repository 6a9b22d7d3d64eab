"""Request body schemas.

Handlers call :func:`parse_body` and get back either the validated model or a
ready-made 400 response carrying the first validation error.
"""
from __future__ import annotations

import re
from typing import ClassVar, Literal, Optional
from urllib.parse import urlparse

from flask import jsonify, request
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _normalise_email(value: str) -> str:
    email = (value or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Invalid email address")
    return email


# -------------------------
# Auth & profile
# -------------------------


class RegisterBody(_Body):
    name: str = Field(min_length=2, max_length=120)
    email: str
    password: str = Field(min_length=8, max_length=128)
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    city: Optional[str] = Field(default=None, max_length=64)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("username", "city", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)


class LoginBody(_Body):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ForgotPasswordBody(_Body):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _normalise_email(v)


class ResetPasswordBody(_Body):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=128)


class ProfileUpdateBody(_Body):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    city: Optional[str] = Field(default=None, max_length=64)
    image: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("image")
    @classmethod
    def check_image_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Image must be a valid URL")
        return v


# -------------------------
# Listings
# -------------------------

Condition = Literal["NEW", "LIKE_NEW", "GOOD", "FAIR"]


class ListingCreateBody(_Body):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=5000)
    price: float = Field(gt=0, le=999999)
    category: str = Field(min_length=1, max_length=64)
    size: Optional[str] = Field(default=None, max_length=50)
    brand: Optional[str] = Field(default=None, max_length=100)
    condition: Condition
    images: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("size", "brand", "images", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)


class ListingUpdateBody(_Body):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=5000)
    price: Optional[float] = Field(default=None, gt=0, le=999999)
    category: Optional[str] = Field(default=None, min_length=1, max_length=64)
    size: Optional[str] = Field(default=None, max_length=50)
    brand: Optional[str] = Field(default=None, max_length=100)
    condition: Optional[Condition] = None
    images: Optional[str] = Field(default=None, max_length=2000)

    # Columns that may not be cleared with an explicit null.
    REQUIRED_COLUMNS: ClassVar[tuple[str, ...]] = ("title", "description", "price", "category", "condition")

    @field_validator("size", "brand", "images", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    def changes(self) -> dict:
        out = self.model_dump(exclude_unset=True)
        for key in self.REQUIRED_COLUMNS:
            if key in out and out[key] is None:
                out.pop(key)
        if "images" in out and out["images"] is None:
            out["images"] = ""
        return out


# -------------------------
# Orders & reviews
# -------------------------


class OrderCreateBody(_Body):
    listing_id: int = Field(gt=0)
    shipping_method: Literal["STANDARD", "EXPRESS"]
    shipping_address: str = Field(min_length=10, max_length=500)


class OrderUpdateBody(_Body):
    status: Literal["PENDING", "PAID", "SHIPPED", "DELIVERED", "CANCELLED", "DISPUTED"]


class ReviewCreateBody(_Body):
    order_id: int = Field(gt=0)
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("comment", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)


# -------------------------
# Messaging & admin
# -------------------------


class ConversationCreateBody(_Body):
    listing_id: int = Field(gt=0)
    seller_id: int = Field(gt=0)


class MessageCreateBody(_Body):
    content: str = Field(min_length=1, max_length=5000)


class AdminUserActionBody(_Body):
    action: str

    @field_validator("action")
    @classmethod
    def known_action(cls, v: str) -> str:
        action = v.lower()
        if action not in ("suspend", "activate"):
            raise ValueError("Invalid action")
        return action


def first_error_message(err: ValidationError) -> str:
    errors = err.errors(include_url=False)
    if not errors:
        return "Invalid request"
    first = errors[0]
    ctx = first.get("ctx") or {}
    if first.get("type") == "value_error" and ctx.get("error") is not None:
        return str(ctx["error"])
    loc = ".".join(str(part) for part in (first.get("loc") or ()))
    msg = first.get("msg") or "Invalid value"
    return f"{loc}: {msg}" if loc else msg


def parse_body(schema: type[BaseModel]):
    """Validate the JSON body against ``schema``; return (data, error_response)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        return schema.model_validate(payload), None
    except ValidationError as e:
        return None, (jsonify({"ok": False, "message": first_error_message(e)}), 400)
