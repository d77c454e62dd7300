from typing import List

from fastapi import APIRouter, Depends, status

from job_manager.core.errors import ErrorResponseModel
from job_manager.dependencies.services import get_request_correlation_id, get_subscription_service
from job_manager.models.subscription import (
    ExpireResponse,
    PremiumStatusResponse,
    SubscriptionCreateRequest,
    SubscriptionResponse,
    SubscriptionStatusResponse,
)
from job_manager.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/company/{company_id}", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    company_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """
    Subscription status for a company. Companies without a subscription
    are reported INACTIVE and not premium.
    """
    return await service.get_status(company_id, correlation_id=correlation_id)


@router.get("/company/{company_id}/all", response_model=List[SubscriptionResponse])
async def list_company_subscriptions(
    company_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.list_by_company_id(company_id, correlation_id=correlation_id)


@router.get(
    "/company/{company_id}/current",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_current_subscription(
    company_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.get_by_company_id(company_id, correlation_id=correlation_id)


@router.get("/company/{company_id}/is-premium", response_model=PremiumStatusResponse)
async def is_premium(
    company_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    premium = await service.is_premium(company_id, correlation_id=correlation_id)
    return PremiumStatusResponse(company_id=company_id, is_premium=premium)


@router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponseModel}},
)
async def create_subscription(
    request: SubscriptionCreateRequest,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.create(request, correlation_id=correlation_id)


@router.patch(
    "/{subscription_id}/activate",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def activate_subscription(
    subscription_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.activate(subscription_id, correlation_id=correlation_id)


@router.patch(
    "/{subscription_id}/deactivate",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def deactivate_subscription(
    subscription_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.deactivate(subscription_id, correlation_id=correlation_id)


@router.patch(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def cancel_subscription(
    subscription_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.cancel(subscription_id, correlation_id=correlation_id)


@router.post("/expire", response_model=ExpireResponse)
async def expire_overdue_subscriptions(
    service: SubscriptionService = Depends(get_subscription_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """Mark ACTIVE subscriptions past their endAt as EXPIRED (run by a scheduler)"""
    expired = await service.expire_overdue(correlation_id=correlation_id)
    return ExpireResponse(expired_count=expired)
