"""
Subscription repository
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.core.logger import logger
from job_manager.models.subscription import SubscriptionStatus
from job_manager.repositories.base_repository import BaseRepository


class SubscriptionRepository(BaseRepository):

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def find_latest_by_company(
        self,
        company_id: str,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.find_one(
            {"companyId": company_id},
            sort=[("createdAt", -1)],
            correlation_id=correlation_id,
        )

    async def list_by_company(
        self,
        company_id: str,
        correlation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.find_many(
            {"companyId": company_id},
            sort=[("createdAt", -1)],
            correlation_id=correlation_id,
        )

    async def set_fields(
        self,
        subscription_id: str,
        fields: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> bool:
        return await self.update({"_id": subscription_id}, {"$set": fields}, correlation_id=correlation_id)

    async def expire_overdue(self, now: datetime, correlation_id: Optional[str] = None) -> int:
        """Mark ACTIVE subscriptions whose endAt has passed as EXPIRED"""
        result = await self.collection.update_many(
            {"status": SubscriptionStatus.ACTIVE.value, "endAt": {"$lt": now}},
            {"$set": {"status": SubscriptionStatus.EXPIRED.value, "updatedAt": now}},
        )
        logger.info(
            f"Expired {result.modified_count} overdue subscriptions",
            correlation_id=correlation_id,
            metadata={"expiredCount": result.modified_count}
        )
        return result.modified_count
