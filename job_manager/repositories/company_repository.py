"""
Company repository: company records with their embedded profile.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.core.logger import logger
from job_manager.repositories.base_repository import BaseRepository


class CompanyRepository(BaseRepository):

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def insert_if_absent(self, document: Dict[str, Any], correlation_id: Optional[str] = None) -> bool:
        """
        Create the company unless one with the same id exists.

        Returns:
            bool: True if a new document was inserted
        """
        company_id = document["_id"]
        fields = {key: value for key, value in document.items() if key != "_id"}

        result = await self.collection.update_one(
            {"_id": company_id},
            {"$setOnInsert": fields},
            upsert=True,
        )
        created = result.upserted_id is not None

        logger.debug(
            "Company upsert completed",
            correlation_id=correlation_id,
            metadata={"companyId": company_id, "created": created}
        )
        return created

    async def search(
        self,
        search: Optional[str] = None,
        country_code: Optional[str] = None,
        sort_by: str = "createdAt",
        descending: bool = True,
        skip: int = 0,
        limit: int = 10,
        correlation_id: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Page through companies.

        Returns:
            Tuple of (list of companies, total count)
        """
        query: Dict[str, Any] = {}
        if search:
            pattern = re.escape(search.strip())
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"email": {"$regex": pattern, "$options": "i"}},
                {"city": {"$regex": pattern, "$options": "i"}},
            ]
        if country_code:
            query["countryCode"] = country_code

        sort = [(sort_by, -1 if descending else 1), ("_id", 1)]
        companies = await self.find_many(query, skip=skip, limit=limit, sort=sort, correlation_id=correlation_id)
        total = await self.count(query, correlation_id=correlation_id)
        return companies, total

    async def update_fields(
        self,
        company_id: str,
        fields: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> bool:
        return await self.update({"_id": company_id}, {"$set": fields}, correlation_id=correlation_id)

    async def update_country(
        self,
        company_id: str,
        previous_country_code: str,
        new_country_code: str,
        changed_at: datetime,
        extra_fields: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> bool:
        """
        Change the country only if it still equals previous_country_code.

        Returns:
            bool: False when a concurrent writer changed the country first
        """
        fields = dict(extra_fields or {})
        fields.update({
            "countryCode": new_country_code,
            "countryChangedAt": changed_at,
            "updatedAt": changed_at,
        })
        return await self.update(
            {"_id": company_id, "countryCode": previous_country_code},
            {"$set": fields},
            correlation_id=correlation_id,
        )
