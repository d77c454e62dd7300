"""
Company and company profile models
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from job_manager.models.company_account import CamelModel
from job_manager.models.country import is_valid_country_code
from job_manager.utils.clock import utc_now

COMPANY_SIZES = (
    "1-10", "11-50", "51-200", "201-500", "501-1000", "1001-5000", "5001-10000", "10001+",
)
WEBSITE_PATTERN = re.compile(r"^$|^(https?://)?([\w\-]+\.)+[\w\-]+(/[\w\-./?%&=]*)?$")
LINKEDIN_PATTERN = re.compile(r"^$|^(https?://)?(www\.)?linkedin\.com/(company|in)/[\w\-]+/?$")
PHONE_PATTERN = re.compile(r"^\+?[0-9 ()\-]{6,20}$")

SORTABLE_FIELDS = ("createdAt", "updatedAt", "name", "countryCode", "city")


class CompanyProfile(CamelModel):
    about_us: Optional[str] = None
    who_we_seek: Optional[str] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    website_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    founded_year: Optional[int] = None


class Company(CamelModel):
    """Company record; created lazily from the first company.registered event"""
    id: str = Field(alias="_id")
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    country_code: str
    country_changed_at: Optional[datetime] = None
    profile: CompanyProfile = Field(default_factory=CompanyProfile)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class CompanyUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    street_address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=128)
    country_code: Optional[str] = Field(None, min_length=2, max_length=3)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not PHONE_PATTERN.match(value):
            raise ValueError("Phone must be a valid phone number")
        return value

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_country_code(value):
            raise ValueError("Country code must be uppercase letters (e.g., VN, USA)")
        return value


class CompanyProfileUpdateRequest(CamelModel):
    about_us: Optional[str] = Field(None, max_length=10000)
    who_we_seek: Optional[str] = Field(None, max_length=5000)
    logo_url: Optional[str] = Field(None, max_length=512)
    banner_url: Optional[str] = Field(None, max_length=512)
    website_url: Optional[str] = Field(None, max_length=512)
    linkedin_url: Optional[str] = Field(None, max_length=512)
    industry: Optional[str] = Field(None, max_length=128)
    company_size: Optional[str] = Field(None, max_length=64)
    founded_year: Optional[int] = Field(None, ge=1800, le=2100)

    @field_validator("website_url")
    @classmethod
    def validate_website(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not WEBSITE_PATTERN.match(value):
            raise ValueError("Website URL must be a valid URL format")
        return value

    @field_validator("linkedin_url")
    @classmethod
    def validate_linkedin(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not LINKEDIN_PATTERN.match(value):
            raise ValueError("LinkedIn URL must be a valid LinkedIn profile or company URL")
        return value

    @field_validator("company_size")
    @classmethod
    def validate_company_size(cls, value: Optional[str]) -> Optional[str]:
        if value and value not in COMPANY_SIZES:
            raise ValueError(f"Company size must be one of: {', '.join(COMPANY_SIZES)}")
        return value


class CompanyResponse(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    country_code: str
    country_changed_at: Optional[datetime] = None
    profile: CompanyProfile
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_company(cls, company: Company) -> "CompanyResponse":
        return cls(**company.model_dump(exclude={"id"}), id=company.id)


class CompanyListResponse(CamelModel):
    """Paginated company listing"""
    items: List[CompanyResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
