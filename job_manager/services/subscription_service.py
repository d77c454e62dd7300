"""
Subscription service: subscription lifecycle and premium status.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from job_manager.core.errors import ErrorResponse
from job_manager.core.logger import logger
from job_manager.models.subscription import (
    Subscription,
    SubscriptionCreateRequest,
    SubscriptionResponse,
    SubscriptionStatus,
    SubscriptionStatusResponse,
)
from job_manager.repositories.subscription_repository import SubscriptionRepository
from job_manager.services.premium import is_premium
from job_manager.utils.clock import utc_now

REACTIVATABLE = (SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED)


def to_response(subscription: Subscription, now: Optional[datetime] = None) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        company_id=subscription.company_id,
        status=subscription.status,
        start_at=subscription.start_at,
        end_at=subscription.end_at,
        is_premium=is_premium(subscription, now),
        created_at=subscription.created_at,
        updated_at=subscription.updated_at,
    )


class SubscriptionService:

    def __init__(self, repository: SubscriptionRepository):
        self.repository = repository

    async def _latest(self, company_id: str, correlation_id: Optional[str]) -> Optional[Subscription]:
        document = await self.repository.find_latest_by_company(company_id, correlation_id=correlation_id)
        return Subscription.model_validate(document) if document else None

    async def is_premium(self, company_id: str, correlation_id: Optional[str] = None) -> bool:
        return is_premium(await self._latest(company_id, correlation_id))

    async def get_status(self, company_id: str, correlation_id: Optional[str] = None) -> SubscriptionStatusResponse:
        """Status for any company; companies without a subscription are INACTIVE and not premium"""
        subscription = await self._latest(company_id, correlation_id)
        if subscription is None:
            return SubscriptionStatusResponse(
                company_id=company_id,
                status=SubscriptionStatus.INACTIVE,
                is_premium=False,
            )
        return SubscriptionStatusResponse(
            company_id=company_id,
            status=subscription.status,
            end_at=subscription.end_at,
            is_premium=is_premium(subscription),
        )

    async def get_by_company_id(self, company_id: str, correlation_id: Optional[str] = None) -> SubscriptionResponse:
        subscription = await self._latest(company_id, correlation_id)
        if subscription is None:
            raise ErrorResponse("Subscription not found", status_code=404, details={"companyId": company_id})
        return to_response(subscription)

    async def list_by_company_id(
        self,
        company_id: str,
        correlation_id: Optional[str] = None
    ) -> List[SubscriptionResponse]:
        documents = await self.repository.list_by_company(company_id, correlation_id=correlation_id)
        return [to_response(Subscription.model_validate(document)) for document in documents]

    async def create(
        self,
        request: SubscriptionCreateRequest,
        correlation_id: Optional[str] = None
    ) -> SubscriptionResponse:
        """
        Create a subscription. A CANCELLED or EXPIRED subscription is
        reactivated instead; an ACTIVE or INACTIVE one is a conflict.
        """
        now = utc_now()
        existing = await self._latest(request.company_id, correlation_id)

        if existing is not None:
            if existing.status not in REACTIVATABLE:
                raise ErrorResponse(
                    "Subscription already exists for company",
                    status_code=409,
                    details={"companyId": request.company_id, "status": existing.status.value},
                )

            fields = {
                "status": SubscriptionStatus.ACTIVE.value,
                "startAt": request.start_at or now,
                "endAt": request.end_at,
                "updatedAt": now,
            }
            await self.repository.set_fields(existing.id, fields, correlation_id=correlation_id)
            logger.business(
                "subscription_reactivated",
                correlation_id=correlation_id,
                metadata={"subscriptionId": existing.id, "companyId": request.company_id}
            )
            return await self._get(existing.id, correlation_id)

        subscription = Subscription(
            id=str(uuid.uuid4()),
            company_id=request.company_id,
            status=request.status,
            start_at=request.start_at or now,
            end_at=request.end_at,
            created_at=now,
            updated_at=now,
        )
        await self.repository.create(subscription.to_document(), correlation_id=correlation_id)
        logger.business(
            "subscription_created",
            correlation_id=correlation_id,
            metadata={"subscriptionId": subscription.id, "companyId": subscription.company_id}
        )
        return to_response(subscription)

    async def _get(self, subscription_id: str, correlation_id: Optional[str]) -> SubscriptionResponse:
        document = await self.repository.find_by_id(subscription_id, correlation_id=correlation_id)
        if not document:
            raise ErrorResponse(
                "Subscription not found", status_code=404, details={"subscriptionId": subscription_id}
            )
        return to_response(Subscription.model_validate(document))

    async def _set_status(
        self,
        subscription_id: str,
        status: SubscriptionStatus,
        correlation_id: Optional[str]
    ) -> SubscriptionResponse:
        updated = await self.repository.set_fields(
            subscription_id,
            {"status": status.value, "updatedAt": utc_now()},
            correlation_id=correlation_id,
        )
        if not updated:
            raise ErrorResponse(
                "Subscription not found", status_code=404, details={"subscriptionId": subscription_id}
            )
        logger.business(
            "subscription_status_changed",
            correlation_id=correlation_id,
            metadata={"subscriptionId": subscription_id, "status": status.value}
        )
        return await self._get(subscription_id, correlation_id)

    async def activate(self, subscription_id: str, correlation_id: Optional[str] = None) -> SubscriptionResponse:
        return await self._set_status(subscription_id, SubscriptionStatus.ACTIVE, correlation_id)

    async def deactivate(self, subscription_id: str, correlation_id: Optional[str] = None) -> SubscriptionResponse:
        return await self._set_status(subscription_id, SubscriptionStatus.INACTIVE, correlation_id)

    async def cancel(self, subscription_id: str, correlation_id: Optional[str] = None) -> SubscriptionResponse:
        return await self._set_status(subscription_id, SubscriptionStatus.CANCELLED, correlation_id)

    async def expire_overdue(self, now: Optional[datetime] = None, correlation_id: Optional[str] = None) -> int:
        return await self.repository.expire_overdue(now or utc_now(), correlation_id=correlation_id)
