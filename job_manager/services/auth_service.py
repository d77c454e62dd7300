"""
Auth service: company credentials in the country shards.
"""

import secrets
import uuid
from datetime import timedelta
from typing import Optional

import httpx
from pymongo.errors import DuplicateKeyError

from job_manager.clients.subscription_client import SubscriptionServiceClient
from job_manager.core.errors import ErrorResponse
from job_manager.core.logger import logger
from job_manager.events.contracts import CompanyRegisteredEvent
from job_manager.events.topics import COMPANY_REGISTERED
from job_manager.models.company_account import (
    AccountResponse,
    CompanyAccount,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenValidateResponse,
)
from job_manager.models.country import normalize_country_code
from job_manager.repositories.account_repository import CompanyAccountRepository, ShardDocument
from job_manager.repositories.session_invalidation_repository import SessionInvalidationRepository
from job_manager.services.event_publisher import EventPublisher
from job_manager.utils.clock import to_epoch_micros, utc_now
from job_manager.utils.passwords import hash_password, verify_password

MAX_FAILED_LOGINS = 5
FAILED_LOGIN_WINDOW = timedelta(seconds=60)
ACCESS_TOKEN_TTL_SECONDS = 86400


def country_changed_micros(document) -> Optional[int]:
    """
    Exact time of the last applied country change. Documents written before
    countryChangedAtMicros existed fall back to the millisecond date.
    """
    if document.get("countryChangedAtMicros") is not None:
        return document["countryChangedAtMicros"]
    changed_at = document.get("countryChangedAt")
    return to_epoch_micros(changed_at) if changed_at is not None else None


def newest_copy(copies):
    """Pick the copy with the latest country change; never-migrated copies sort first"""
    def key(copy):
        micros = country_changed_micros(copy[1])
        return (micros is not None, micros or 0)
    return max(copies, key=key)


class AuthService:

    def __init__(
        self,
        accounts: CompanyAccountRepository,
        sessions: SessionInvalidationRepository,
        event_publisher: EventPublisher,
        activation_token_ttl_hours: int = 24,
        subscription_client: Optional[SubscriptionServiceClient] = None,
    ):
        self.accounts = accounts
        self.sessions = sessions
        self.event_publisher = event_publisher
        self.activation_token_ttl = timedelta(hours=activation_token_ttl_hours)
        self.subscription_client = subscription_client

    async def register_company(
        self,
        request: RegisterRequest,
        correlation_id: Optional[str] = None
    ) -> RegisterResponse:
        """
        Create the credential record in the shard for the company's country,
        then announce it with company.registered.
        """
        if await self.accounts.find_by_email(request.email):
            raise ErrorResponse("Email already registered", status_code=409, details={"email": request.email})

        now = utc_now()
        country_code = normalize_country_code(request.country_code)
        shard = self.accounts.shard_for(country_code)
        account = CompanyAccount(
            id=str(uuid.uuid4()),
            email=request.email,
            password_hash=hash_password(request.password),
            country_code=country_code,
            activation_token=secrets.token_urlsafe(32),
            activation_token_expiry=now + self.activation_token_ttl,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.accounts.insert(shard, account.to_document(), correlation_id=correlation_id)
        except DuplicateKeyError:
            # lost a race with a concurrent registration of the same email
            raise ErrorResponse("Email already registered", status_code=409, details={"email": request.email})

        event = CompanyRegisteredEvent(
            company_id=account.id,
            email=account.email,
            country_code=country_code,
            activation_token=account.activation_token,
            registered_at=now,
        )
        await self.event_publisher.publish(COMPANY_REGISTERED, event, correlation_id=correlation_id)

        logger.business(
            "company_registered",
            correlation_id=correlation_id,
            metadata={"companyId": account.id, "countryCode": country_code, "shard": shard}
        )
        return RegisterResponse(company_id=account.id, email=account.email, country_code=country_code)

    async def activate_account(self, token: str, correlation_id: Optional[str] = None) -> AccountResponse:
        found = await self.accounts.find_by_activation_token(token)
        if not found:
            raise ErrorResponse("Invalid activation token", status_code=404)

        shard, document = found
        account = CompanyAccount.model_validate(document)

        if account.is_activated:
            logger.info("Account already activated", correlation_id=correlation_id,
                        metadata={"companyId": account.id})
            return AccountResponse.from_account(account, shard)

        now = utc_now()
        if account.activation_token_expiry and account.activation_token_expiry < now:
            raise ErrorResponse("Activation token expired", status_code=400, details={"companyId": account.id})

        await self.accounts.activate(shard, account.id, now)
        account = account.model_copy(update={"is_activated": True, "updated_at": now})

        logger.business("account_activated", correlation_id=correlation_id, metadata={"companyId": account.id})
        return AccountResponse.from_account(account, shard)

    async def login(self, request: LoginRequest, correlation_id: Optional[str] = None) -> LoginResponse:
        """
        Password login across the shards.

        A wrong password counts as a failed attempt; reaching MAX_FAILED_LOGINS
        while the previous failure is younger than FAILED_LOGIN_WINDOW locks
        the account. A successful login resets the counter and drops any
        session invalidation marker left by a shard migration.
        """
        found = await self.accounts.find_by_email(request.email)
        if found:
            found = await self._find_account(found[1]["_id"], correlation_id) or found
        if not found:
            logger.warning("Login failed: email not found", correlation_id=correlation_id,
                           metadata={"email": request.email})
            raise ErrorResponse("Invalid email or password", status_code=401)

        shard, document = found
        account = CompanyAccount.model_validate(document)

        if account.is_locked:
            logger.warning("Login failed: account locked", correlation_id=correlation_id,
                           metadata={"companyId": account.id})
            raise ErrorResponse(
                "Account is locked due to multiple failed login attempts. Please try again later.",
                status_code=423,
            )
        if not account.is_activated:
            raise ErrorResponse("Please activate your account first. Check your email for activation link.",
                                status_code=403)
        if account.auth_provider != "LOCAL":
            raise ErrorResponse(f"This account uses SSO login. Please login with {account.auth_provider}",
                                status_code=400)

        if not account.password_hash or not verify_password(request.password, account.password_hash):
            await self._record_failed_login(shard, account, correlation_id)
            raise ErrorResponse("Invalid email or password", status_code=401)

        if account.failed_login_attempts > 0:
            await self.accounts.reset_failed_logins(shard, account.id)
        await self.sessions.clear(account.id, correlation_id=correlation_id)

        logger.business("company_logged_in", correlation_id=correlation_id,
                        metadata={"companyId": account.id, "shard": shard})
        return LoginResponse(
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            expires_in=ACCESS_TOKEN_TTL_SECONDS,
            company_id=account.id,
            email=account.email,
            role=account.role,
            auth_provider=account.auth_provider,
        )

    async def _record_failed_login(self, shard: str, account: CompanyAccount, correlation_id: Optional[str]) -> None:
        now = utc_now()
        await self.accounts.record_failed_login(shard, account.id, now)
        attempts = account.failed_login_attempts + 1
        logger.warning("Login failed: invalid password", correlation_id=correlation_id,
                       metadata={"companyId": account.id, "failedAttempts": attempts})

        last_failed = account.last_failed_login_at
        if attempts >= MAX_FAILED_LOGINS and last_failed is not None and last_failed > now - FAILED_LOGIN_WINDOW:
            await self.accounts.lock(shard, account.id, now)
            logger.business("account_locked", correlation_id=correlation_id,
                            metadata={"companyId": account.id, "failedAttempts": attempts})

    async def _find_account(self, company_id: str, correlation_id: Optional[str]) -> Optional[ShardDocument]:
        copies = await self.accounts.find_all_copies(company_id, correlation_id=correlation_id)
        if not copies:
            return None
        return newest_copy(copies)

    async def get_account(self, company_id: str, correlation_id: Optional[str] = None) -> AccountResponse:
        found = await self._find_account(company_id, correlation_id)
        if not found:
            raise ErrorResponse("Company account not found", status_code=404, details={"companyId": company_id})
        shard, document = found
        return AccountResponse.from_account(CompanyAccount.model_validate(document), shard)

    async def validate_token(self, company_id: str, correlation_id: Optional[str] = None) -> TokenValidateResponse:
        """
        Placeholder token check: answers from the stored account and any
        session invalidation marker, without verifying a real token.
        """
        found = await self._find_account(company_id, correlation_id)
        if not found:
            return TokenValidateResponse(valid=False, company_id=company_id, reason="unknown company")

        account = CompanyAccount.model_validate(found[1])
        claims = {
            "company_id": account.id,
            "email": account.email,
            "role": account.role,
            "country_code": account.country_code,
        }

        marker = await self.sessions.find_marker(company_id)
        if marker:
            return TokenValidateResponse(valid=False, reason=marker.get("reason", "session invalidated"), **claims)
        if account.is_locked:
            return TokenValidateResponse(valid=False, reason="account locked", **claims)
        return TokenValidateResponse(valid=True, is_premium=await self._premium_claim(company_id), **claims)

    async def _premium_claim(self, company_id: str) -> Optional[bool]:
        if self.subscription_client is None:
            return None
        try:
            return await self.subscription_client.is_premium(company_id)
        except httpx.HTTPError as e:
            logger.warning("Premium status unavailable", error=e, metadata={"companyId": company_id})
            return None
