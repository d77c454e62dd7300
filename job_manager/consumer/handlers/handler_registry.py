"""
Handler Registry - Maps each service's subscribed event types to handler functions
"""

from typing import Awaitable, Callable, Dict

from job_manager.consumer.handlers.company_registered_handler import handle_company_registered
from job_manager.consumer.handlers.country_changed_handler import handle_company_country_changed
from job_manager.consumer.results import ApplyResult
from job_manager.events.topics import COMPANY_COUNTRY_CHANGED, COMPANY_REGISTERED

Handler = Callable[..., Awaitable[ApplyResult]]

# service name -> {event type -> handler}
HANDLERS: Dict[str, Dict[str, Handler]] = {
    "company": {
        COMPANY_REGISTERED: handle_company_registered,
    },
    "auth": {
        COMPANY_COUNTRY_CHANGED: handle_company_country_changed,
    },
    "subscription": {},
}


def get_handlers(service_name: str) -> Dict[str, Handler]:
    return HANDLERS.get(service_name, {})
