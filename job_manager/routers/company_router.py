from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from job_manager.core.errors import ErrorResponseModel
from job_manager.dependencies.services import get_company_service, get_request_correlation_id
from job_manager.models.company import (
    CompanyListResponse,
    CompanyProfile,
    CompanyProfileUpdateRequest,
    CompanyResponse,
    CompanyUpdateRequest,
)
from job_manager.services.company_service import CompanyService

router = APIRouter()


@router.get(
    "",
    response_model=CompanyListResponse,
    responses={400: {"model": ErrorResponseModel}},
)
async def list_companies(
    page: int = Query(0, description="Zero-based page number"),
    size: int = Query(10, description="Page size (1-100)"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_dir: str = Query("desc", alias="sortDir"),
    search: Optional[str] = Query(None, max_length=255),
    country: Optional[str] = Query(None, max_length=3),
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.list_companies(
        page=page,
        size=size,
        sort_by=sort_by,
        sort_dir=sort_dir,
        search=search,
        country_code=country,
        correlation_id=correlation_id,
    )


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_company(
    company_id: str,
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.get_company(company_id, correlation_id=correlation_id)


@router.put(
    "/{company_id}",
    response_model=CompanyResponse,
    responses={404: {"model": ErrorResponseModel}, 409: {"model": ErrorResponseModel}},
)
async def update_company(
    company_id: str,
    request: CompanyUpdateRequest,
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """
    Partially update a company. Changing countryCode emits
    company.country.changed once the new country is stored.
    """
    return await service.update_company(company_id, request, correlation_id=correlation_id)


@router.get(
    "/{company_id}/country",
    response_class=PlainTextResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_company_country(
    company_id: str,
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """Country code exactly as stored, as a plain-text body (used by other services)"""
    country_code = await service.get_company_country(company_id, correlation_id=correlation_id)
    return PlainTextResponse(country_code)


@router.get(
    "/{company_id}/profile",
    response_model=CompanyProfile,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_company_profile(
    company_id: str,
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.get_company_profile(company_id, correlation_id=correlation_id)


@router.put(
    "/{company_id}/profile",
    response_model=CompanyProfile,
    responses={404: {"model": ErrorResponseModel}},
)
async def update_company_profile(
    company_id: str,
    request: CompanyProfileUpdateRequest,
    service: CompanyService = Depends(get_company_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.update_company_profile(company_id, request, correlation_id=correlation_id)
