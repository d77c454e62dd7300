from fastapi import APIRouter, Depends, status

from job_manager.core.errors import ErrorResponseModel
from job_manager.dependencies.services import get_auth_service, get_request_correlation_id
from job_manager.models.company_account import (
    AccountResponse,
    ActivateRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenValidateRequest,
    TokenValidateResponse,
)
from job_manager.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponseModel}},
)
async def register_company(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """
    Register a company account.

    The account is stored in the shard of its country and announced on
    company.registered so the company service creates the company record.
    """
    return await service.register_company(request, correlation_id=correlation_id)


@router.post(
    "/activate",
    response_model=AccountResponse,
    responses={400: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def activate_account(
    request: ActivateRequest,
    service: AuthService = Depends(get_auth_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.activate_account(request.token, correlation_id=correlation_id)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponseModel},
        401: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        423: {"model": ErrorResponseModel},
    },
)
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    """
    Password login. Five wrong passwords in quick succession lock the account.
    The returned tokens are opaque placeholders.
    """
    return await service.login(request, correlation_id=correlation_id)


@router.get(
    "/companies/{company_id}",
    response_model=AccountResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_account(
    company_id: str,
    service: AuthService = Depends(get_auth_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.get_account(company_id, correlation_id=correlation_id)


@router.post("/token/validate", response_model=TokenValidateResponse)
async def validate_token(
    request: TokenValidateRequest,
    service: AuthService = Depends(get_auth_service),
    correlation_id: str = Depends(get_request_correlation_id),
):
    return await service.validate_token(request.company_id, correlation_id=correlation_id)
