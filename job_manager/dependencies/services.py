"""
Service layer dependency injection for FastAPI.

Services are built once in the application lifespan and kept on
app.state.container; these dependencies hand them to the routes.
"""

from fastapi import Depends, Request

from job_manager.container import ServiceContainer
from job_manager.core.errors import ErrorResponse
from job_manager.services.auth_service import AuthService
from job_manager.services.company_service import CompanyService
from job_manager.services.subscription_service import SubscriptionService
from job_manager.utils.correlation_id import get_correlation_id


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_request_correlation_id() -> str:
    """Correlation ID bound by CorrelationIdMiddleware"""
    return get_correlation_id()


def _require(service, name: str):
    if service is None:
        raise ErrorResponse(f"{name} is not enabled in this process", status_code=503)
    return service


def get_auth_service(container: ServiceContainer = Depends(get_container)) -> AuthService:
    return _require(container.auth_service, "Auth service")


def get_company_service(container: ServiceContainer = Depends(get_container)) -> CompanyService:
    return _require(container.company_service, "Company service")


def get_subscription_service(container: ServiceContainer = Depends(get_container)) -> SubscriptionService:
    return _require(container.subscription_service, "Subscription service")
