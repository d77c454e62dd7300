"""
Company subscription models
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from job_manager.models.company_account import CamelModel
from job_manager.utils.clock import utc_now


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class Subscription(CamelModel):
    id: str = Field(alias="_id")
    company_id: str
    status: SubscriptionStatus = SubscriptionStatus.INACTIVE
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        document = self.model_dump(by_alias=True)
        document["status"] = self.status.value
        return document


class SubscriptionCreateRequest(CamelModel):
    company_id: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError("endAt must be after startAt")
        return self


class SubscriptionResponse(CamelModel):
    id: str
    company_id: str
    status: SubscriptionStatus
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_premium: bool
    created_at: datetime
    updated_at: datetime


class SubscriptionStatusResponse(CamelModel):
    company_id: str
    status: SubscriptionStatus
    end_at: Optional[datetime] = None
    is_premium: bool


class PremiumStatusResponse(CamelModel):
    company_id: str
    is_premium: bool


class ExpireResponse(CamelModel):
    expired_count: int
