"""
Company credential repository spread over the auth shards.

Each shard is a separate database holding a company_accounts collection.
Lookups that do not know the country scatter to every shard and gather the
results.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.core.logger import logger
from job_manager.models.country import shard_for_country

ShardDocument = Tuple[str, Dict[str, Any]]


class CompanyAccountRepository:

    def __init__(self, shard_collections: Dict[str, AsyncIOMotorCollection]):
        self.shard_collections = shard_collections

    def shard_for(self, country_code: Optional[str]) -> str:
        return shard_for_country(country_code)

    def _collection(self, shard: str) -> AsyncIOMotorCollection:
        return self.shard_collections[shard]

    async def _scatter(self, query: Dict[str, Any]) -> List[ShardDocument]:
        shards = list(self.shard_collections)
        documents = await asyncio.gather(
            *(self.shard_collections[shard].find_one(query) for shard in shards)
        )
        return [(shard, document) for shard, document in zip(shards, documents) if document]

    async def find_all_copies(self, company_id: str, correlation_id: Optional[str] = None) -> List[ShardDocument]:
        """Every shard's copy of the account; more than one means an interrupted migration"""
        copies = await self._scatter({"_id": company_id})
        if len(copies) > 1:
            logger.warning(
                "Company account found in several shards",
                correlation_id=correlation_id,
                metadata={"companyId": company_id, "shards": [shard for shard, _ in copies]}
            )
        return copies

    async def find_by_email(self, email: str) -> Optional[ShardDocument]:
        copies = await self._scatter({"email": email})
        return copies[0] if copies else None

    async def find_by_activation_token(self, token: str) -> Optional[ShardDocument]:
        copies = await self._scatter({"activationToken": token})
        return copies[0] if copies else None

    async def insert(self, shard: str, document: Dict[str, Any], correlation_id: Optional[str] = None) -> None:
        await self._collection(shard).insert_one(document)
        logger.info(
            "Company account created",
            correlation_id=correlation_id,
            metadata={"companyId": document["_id"], "shard": shard}
        )

    async def update_country_in_place(
        self,
        shard: str,
        company_id: str,
        previous_country_code: str,
        new_country_code: str,
        changed_at: datetime,
        changed_at_micros: int,
    ) -> bool:
        """Guarded single-document update; False if the stored country moved on"""
        result = await self._collection(shard).update_one(
            {"_id": company_id, "countryCode": previous_country_code},
            {"$set": {
                "countryCode": new_country_code,
                "countryChangedAt": changed_at,
                "countryChangedAtMicros": changed_at_micros,
                "updatedAt": changed_at,
            }},
        )
        return result.matched_count > 0

    async def upsert_copy(self, shard: str, document: Dict[str, Any]) -> None:
        """Write the full document into a shard, replacing any partial earlier copy"""
        await self._collection(shard).replace_one({"_id": document["_id"]}, document, upsert=True)

    async def delete_guarded(self, shard: str, company_id: str, country_code: str) -> bool:
        result = await self._collection(shard).delete_one({"_id": company_id, "countryCode": country_code})
        return result.deleted_count > 0

    async def delete_copy(self, shard: str, company_id: str) -> bool:
        result = await self._collection(shard).delete_one({"_id": company_id})
        return result.deleted_count > 0

    async def activate(self, shard: str, company_id: str, activated_at: datetime) -> bool:
        result = await self._collection(shard).update_one(
            {"_id": company_id},
            {"$set": {
                "isActivated": True,
                "updatedAt": activated_at,
            }},
        )
        return result.matched_count > 0

    async def record_failed_login(self, shard: str, company_id: str, failed_at: datetime) -> None:
        await self._collection(shard).update_one(
            {"_id": company_id},
            {"$inc": {"failedLoginAttempts": 1}, "$set": {"lastFailedLoginAt": failed_at}},
        )

    async def reset_failed_logins(self, shard: str, company_id: str) -> None:
        await self._collection(shard).update_one(
            {"_id": company_id},
            {"$set": {"failedLoginAttempts": 0, "lastFailedLoginAt": None}},
        )

    async def lock(self, shard: str, company_id: str, locked_at: datetime) -> bool:
        result = await self._collection(shard).update_one(
            {"_id": company_id},
            {"$set": {"isLocked": True, "updatedAt": locked_at}},
        )
        return result.matched_count > 0
