"""
Shard migration for company credentials.

Applies company.country.changed: the credential record follows the company's
country into the shard that country maps to. Applying the same event any
number of times leaves the same state as applying it once.
"""

from typing import List, Optional

from job_manager.consumer.results import ApplyResult
from job_manager.core.logger import logger
from job_manager.events.contracts import CompanyCountryChangedEvent
from job_manager.repositories.account_repository import CompanyAccountRepository, ShardDocument
from job_manager.repositories.session_invalidation_repository import SessionInvalidationRepository
from job_manager.services.auth_service import country_changed_micros, newest_copy
from job_manager.utils.clock import to_epoch_micros, utc_now


class ShardMigrationService:

    def __init__(self, accounts: CompanyAccountRepository, sessions: SessionInvalidationRepository):
        self.accounts = accounts
        self.sessions = sessions

    async def _resolve_copies(
        self,
        company_id: str,
        copies: List[ShardDocument],
        correlation_id: Optional[str],
    ) -> ShardDocument:
        """Keep the newest copy and delete the rest left behind by an interrupted migration"""
        winner = newest_copy(copies)
        for shard, _ in copies:
            if shard != winner[0]:
                await self.accounts.delete_copy(shard, company_id)
                logger.warning(
                    "Removed stale company account copy",
                    correlation_id=correlation_id,
                    metadata={"companyId": company_id, "staleShard": shard, "keptShard": winner[0]}
                )
        return winner

    async def apply_country_change(
        self,
        event: CompanyCountryChangedEvent,
        correlation_id: Optional[str] = None,
    ) -> ApplyResult:
        company_id = str(event.company_id)
        previous_code = event.previous_country_code
        new_code = event.new_country_code

        copies = await self.accounts.find_all_copies(company_id, correlation_id=correlation_id)
        if not copies:
            return ApplyResult.permanent(f"company account {company_id} not found in any shard")

        repaired = len(copies) > 1
        source_shard, document = await self._resolve_copies(company_id, copies, correlation_id)
        if repaired:
            await self.sessions.invalidate(company_id, reason=f"country changed to {document['countryCode']}")

        current_code = document["countryCode"]
        # compared in microseconds: countryChangedAt itself only keeps milliseconds
        event_micros = to_epoch_micros(event.changed_at)
        stored_micros = country_changed_micros(document)

        if current_code == new_code:
            return ApplyResult.duplicate(f"country already {new_code}")

        if stored_micros is not None and event_micros <= stored_micros:
            return ApplyResult.duplicate(
                f"event from {event.changed_at.isoformat()} is not newer than stored state"
            )

        if current_code != previous_code:
            return ApplyResult.rejected(
                f"stored country {current_code} does not match previousCountryCode {previous_code}"
            )

        target_shard = self.accounts.shard_for(new_code)

        if target_shard == source_shard:
            updated = await self.accounts.update_country_in_place(
                source_shard, company_id, previous_code, new_code, event.changed_at, event_micros
            )
            if not updated:
                # country moved between read and write; re-read on retry decides
                return ApplyResult.transient("concurrent country change")
        else:
            migrated = dict(document)
            migrated.update({
                "countryCode": new_code,
                "countryChangedAt": event.changed_at,
                "countryChangedAtMicros": event_micros,
                "updatedAt": utc_now(),
            })
            await self.accounts.upsert_copy(target_shard, migrated)
            removed = await self.accounts.delete_guarded(source_shard, company_id, previous_code)
            if not removed:
                logger.warning(
                    "Source copy changed during migration, left for the next read to resolve",
                    correlation_id=correlation_id,
                    metadata={"companyId": company_id, "sourceShard": source_shard}
                )

        await self.sessions.invalidate(company_id, reason=f"country changed to {new_code}")

        logger.business(
            "company_shard_migrated",
            correlation_id=correlation_id,
            metadata={
                "companyId": company_id,
                "previousCountryCode": previous_code,
                "newCountryCode": new_code,
                "sourceShard": source_shard,
                "targetShard": target_shard,
            }
        )
        return ApplyResult.applied(f"{previous_code} -> {new_code} ({source_shard} -> {target_shard})")
