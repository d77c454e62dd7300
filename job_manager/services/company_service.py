"""
Company service: company records, profiles and the country change that
drives auth shard migration.
"""

import math
from datetime import timedelta
from typing import Optional

from job_manager.core.errors import ErrorResponse
from job_manager.core.logger import logger
from job_manager.events.contracts import CompanyCountryChangedEvent, CompanyRegisteredEvent
from job_manager.events.topics import COMPANY_COUNTRY_CHANGED
from job_manager.models.company import (
    SORTABLE_FIELDS,
    Company,
    CompanyListResponse,
    CompanyProfile,
    CompanyProfileUpdateRequest,
    CompanyResponse,
    CompanyUpdateRequest,
)
from job_manager.models.country import normalize_country_code
from job_manager.repositories.company_repository import CompanyRepository
from job_manager.services.event_publisher import EventPublisher
from job_manager.utils.clock import utc_now

MAX_PAGE_SIZE = 100


class CompanyService:

    def __init__(self, repository: CompanyRepository, event_publisher: Optional[EventPublisher] = None):
        self.repository = repository
        self.event_publisher = event_publisher

    async def create_company_from_event(
        self,
        event: CompanyRegisteredEvent,
        correlation_id: Optional[str] = None
    ) -> bool:
        """
        Create the company for a registration event. A company that already
        exists is left as it is.

        Returns:
            bool: True if the company was created by this call
        """
        now = utc_now()
        company = Company(
            id=str(event.company_id),
            email=event.email,
            country_code=normalize_country_code(event.country_code),
            created_at=event.registered_at,
            updated_at=now,
        )
        created = await self.repository.insert_if_absent(company.to_document(), correlation_id=correlation_id)

        if created:
            logger.business(
                "company_created",
                correlation_id=correlation_id,
                metadata={"companyId": company.id, "countryCode": company.country_code}
            )
        return created

    async def _load(self, company_id: str, correlation_id: Optional[str]) -> Company:
        document = await self.repository.find_by_id(company_id, correlation_id=correlation_id)
        if not document:
            raise ErrorResponse("Company not found", status_code=404, details={"companyId": company_id})
        return Company.model_validate(document)

    async def get_company(self, company_id: str, correlation_id: Optional[str] = None) -> CompanyResponse:
        return CompanyResponse.from_company(await self._load(company_id, correlation_id))

    async def get_company_country(self, company_id: str, correlation_id: Optional[str] = None) -> str:
        company = await self._load(company_id, correlation_id)
        return company.country_code

    async def get_company_profile(self, company_id: str, correlation_id: Optional[str] = None) -> CompanyProfile:
        company = await self._load(company_id, correlation_id)
        return company.profile

    async def list_companies(
        self,
        page: int = 0,
        size: int = 10,
        sort_by: str = "createdAt",
        sort_dir: str = "desc",
        search: Optional[str] = None,
        country_code: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> CompanyListResponse:
        if page < 0:
            raise ErrorResponse("Page number cannot be negative", status_code=400)
        if size < 1 or size > MAX_PAGE_SIZE:
            raise ErrorResponse(f"Page size must be between 1 and {MAX_PAGE_SIZE}", status_code=400)
        if sort_by not in SORTABLE_FIELDS:
            raise ErrorResponse(
                f"sortBy must be one of: {', '.join(SORTABLE_FIELDS)}",
                status_code=400,
            )
        if sort_dir.lower() not in ("asc", "desc"):
            raise ErrorResponse("sortDir must be asc or desc", status_code=400)

        documents, total = await self.repository.search(
            search=search,
            country_code=country_code.upper() if country_code else None,
            sort_by=sort_by,
            descending=sort_dir.lower() == "desc",
            skip=page * size,
            limit=size,
            correlation_id=correlation_id,
        )
        return CompanyListResponse(
            items=[CompanyResponse.from_company(Company.model_validate(doc)) for doc in documents],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if total else 0,
        )

    async def update_company(
        self,
        company_id: str,
        request: CompanyUpdateRequest,
        correlation_id: Optional[str] = None
    ) -> CompanyResponse:
        """
        Partial update. A country change is written with a guard on the
        current country and then announced with company.country.changed.
        """
        company = await self._load(company_id, correlation_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True, by_alias=True)
        new_country = changes.pop("countryCode", None)

        now = utc_now()
        changes["updatedAt"] = now

        if new_country and new_country != company.country_code:
            changed_at = now
            if company.country_changed_at and changed_at <= company.country_changed_at:
                # keep per-company event timestamps strictly increasing
                changed_at = company.country_changed_at + timedelta(milliseconds=1)

            updated = await self.repository.update_country(
                company_id,
                previous_country_code=company.country_code,
                new_country_code=new_country,
                changed_at=changed_at,
                extra_fields=changes,
                correlation_id=correlation_id,
            )
            if not updated:
                raise ErrorResponse(
                    "Company was modified concurrently, please retry",
                    status_code=409,
                    details={"companyId": company_id},
                )

            logger.business(
                "company_country_changed",
                correlation_id=correlation_id,
                metadata={
                    "companyId": company_id,
                    "previousCountryCode": company.country_code,
                    "newCountryCode": new_country,
                }
            )

            if self.event_publisher is not None:
                event = CompanyCountryChangedEvent(
                    company_id=company_id,
                    previous_country_code=company.country_code,
                    new_country_code=new_country,
                    changed_at=changed_at,
                )
                await self.event_publisher.publish(COMPANY_COUNTRY_CHANGED, event, correlation_id=correlation_id)
        else:
            await self.repository.update_fields(company_id, changes, correlation_id=correlation_id)

        return await self.get_company(company_id, correlation_id)

    async def update_company_profile(
        self,
        company_id: str,
        request: CompanyProfileUpdateRequest,
        correlation_id: Optional[str] = None
    ) -> CompanyProfile:
        await self._load(company_id, correlation_id)

        changes = {
            f"profile.{field}": value
            for field, value in request.model_dump(exclude_unset=True, by_alias=True).items()
        }
        changes["updatedAt"] = utc_now()
        await self.repository.update_fields(company_id, changes, correlation_id=correlation_id)

        return await self.get_company_profile(company_id, correlation_id)
