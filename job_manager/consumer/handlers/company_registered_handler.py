"""
Company Registered Handler
Creates the company record for a newly registered company account
"""

from job_manager.consumer.results import ApplyResult
from job_manager.events.contracts import CompanyRegisteredEvent, EventEnvelope


async def handle_company_registered(event: CompanyRegisteredEvent, envelope: EventEnvelope, services) -> ApplyResult:
    """
    Handle company.registered.

    Args:
        event: Decoded registration event
        envelope: Envelope it arrived in (for the correlation id)
        services: Handles built by the consumer process
    """
    created = await services.company_service.create_company_from_event(
        event, correlation_id=envelope.correlation_id
    )
    if created:
        return ApplyResult.applied(f"company {event.company_id} created")
    return ApplyResult.duplicate(f"company {event.company_id} already exists")
