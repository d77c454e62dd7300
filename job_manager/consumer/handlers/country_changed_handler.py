"""
Company Country Changed Handler
Moves the company's credentials to the shard of its new country
"""

from job_manager.consumer.results import ApplyResult
from job_manager.events.contracts import CompanyCountryChangedEvent, EventEnvelope


async def handle_company_country_changed(
    event: CompanyCountryChangedEvent,
    envelope: EventEnvelope,
    services,
) -> ApplyResult:
    return await services.shard_migration_service.apply_country_change(
        event, correlation_id=envelope.correlation_id
    )
