"""
Company credential (auth) models
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from job_manager.models.country import is_valid_country_code, normalize_country_code
from job_manager.utils.clock import utc_now

PASSWORD_PATTERN = re.compile(r"^(?=.*[0-9])(?=.*[A-Z])(?=.*[@#$%^&+=!]).*$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyAccount(CamelModel):
    """Credential record stored in the shard selected by its country code"""
    id: str = Field(alias="_id")
    email: str
    password_hash: Optional[str] = None
    country_code: str
    auth_provider: str = "LOCAL"
    role: str = "COMPANY"
    is_activated: bool = False
    activation_token: Optional[str] = None
    activation_token_expiry: Optional[datetime] = None
    failed_login_attempts: int = 0
    is_locked: bool = False
    country_changed_at: Optional[datetime] = None
    country_changed_at_micros: Optional[int] = None
    last_failed_login_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class RegisterRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    country_code: Optional[str] = Field(None, max_length=3)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Email must be a valid email address")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not PASSWORD_PATTERN.match(value):
            raise ValueError(
                "Password must contain at least 1 number, 1 uppercase letter, and 1 special character"
            )
        return value

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = normalize_country_code(value)
        if not is_valid_country_code(value):
            raise ValueError("Country code must be 2-3 letters (e.g., VN, USA)")
        return value


class RegisterResponse(CamelModel):
    company_id: str
    email: str
    country_code: str
    message: str = "Registration successful. Please activate your account."


class ActivateRequest(CamelModel):
    token: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginResponse(CamelModel):
    """Login result carrying opaque placeholder tokens"""
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 86400
    company_id: str
    email: str
    role: str
    auth_provider: str


class AccountResponse(CamelModel):
    company_id: str
    email: str
    country_code: str
    shard: str
    auth_provider: str
    role: str
    is_activated: bool
    is_locked: bool
    country_changed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account: CompanyAccount, shard: str) -> "AccountResponse":
        return cls(
            company_id=account.id,
            email=account.email,
            country_code=account.country_code,
            shard=shard,
            auth_provider=account.auth_provider,
            role=account.role,
            is_activated=account.is_activated,
            is_locked=account.is_locked,
            country_changed_at=account.country_changed_at,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class TokenValidateRequest(CamelModel):
    company_id: str


class TokenValidateResponse(CamelModel):
    """Placeholder claims; token verification itself is not performed"""
    valid: bool
    company_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    country_code: Optional[str] = None
    is_premium: Optional[bool] = None
    reason: Optional[str] = None
