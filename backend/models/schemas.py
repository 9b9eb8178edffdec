# =====================================
# backend/models/schemas.py - Pydantic Models
# =====================================
from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime
from enum import Enum
import math

DATE_FORMAT = '%Y-%m-%d'
MAX_NOTES_LENGTH = 500


def round_half_up(value: float) -> int:
    """Rounds .5 away from zero for non-negative values (round() is banker's)"""
    return int(math.floor(value + 0.5))


def parse_day(value: str) -> datetime:
    """Parses a plain YYYY-MM-DD calendar day"""
    return datetime.strptime(value, DATE_FORMAT)


# =====================================
# Users
# =====================================
class Plan(str, Enum):
    FREE = "free"
    PAID = "paid"


class SubscriptionStatus(str, Enum):
    NONE = "none"
    CREATED = "created"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED_AT_PERIOD_END = "cancelled_at_period_end"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name is required')
        return v.strip()

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must have at least 6 characters')
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    name: str = ""
    email: str
    plan: str = Plan.FREE.value
    subscription_id: Optional[str] = None
    subscription_status: str = SubscriptionStatus.NONE.value
    subscription_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# =====================================
# Activities
# =====================================
class ActivityCreate(BaseModel):
    category: str
    duration: float
    date: Optional[str] = None
    notes: Optional[str] = None

    @validator('category')
    def validate_category(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError('Category is required')
        return v

    @validator('duration')
    def validate_duration(cls, v):
        if v < 1:
            raise ValueError('Duration must be at least 1 minute')
        # Stored as whole minutes
        return round_half_up(v)

    @validator('date')
    def validate_date(cls, v):
        if v is None:
            return v
        try:
            parse_day(v)
        except ValueError:
            raise ValueError('Date must be in YYYY-MM-DD format')
        return v

    @validator('notes')
    def validate_notes(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes cannot exceed {MAX_NOTES_LENGTH} characters')
        return v


# =====================================
# Categories
# =====================================
class CategoryCreate(BaseModel):
    name: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    is_productive: bool = Field(False, alias="isProductive")

    class Config:
        populate_by_name = True

    @validator('name')
    def validate_name(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError('Category name is required')
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    emoji: Optional[str] = None
    color: Optional[str] = None
    is_productive: Optional[bool] = Field(None, alias="isProductive")

    class Config:
        populate_by_name = True

    @validator('name')
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if not v:
            raise ValueError('Category name cannot be empty')
        return v


# =====================================
# Subscription
# =====================================
class SubscriptionCreate(BaseModel):
    plan_id: str = Field(..., alias="planId", min_length=1)

    class Config:
        populate_by_name = True


class SubscriptionVerify(BaseModel):
    razorpay_payment_id: str
    razorpay_subscription_id: str
    razorpay_signature: str
