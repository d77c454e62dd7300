"""Unit tests for the company service"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, patch

from job_manager.core.errors import ErrorResponse
from job_manager.events.contracts import CompanyRegisteredEvent, decode_envelope
from job_manager.events.topics import COMPANY_COUNTRY_CHANGED
from job_manager.models.company import CompanyProfileUpdateRequest, CompanyUpdateRequest

REGISTERED_AT = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def registered(company_id=None, country_code="VN", email="hr@acme.vn"):
    return CompanyRegisteredEvent(
        company_id=company_id or uuid.uuid4(),
        email=email,
        country_code=country_code,
        registered_at=REGISTERED_AT,
    )


async def create(company_service, **kwargs):
    event = registered(**kwargs)
    await company_service.create_company_from_event(event)
    return str(event.company_id)


class TestCreateCompanyFromEvent:

    @pytest.mark.asyncio
    async def test_creates_company(self, company_service, company_collection):
        event = registered()

        created = await company_service.create_company_from_event(event)

        assert created is True
        document = company_collection.documents[0]
        assert document["_id"] == str(event.company_id)
        assert document["countryCode"] == "VN"
        assert document["email"] == "hr@acme.vn"
        assert document["createdAt"] == REGISTERED_AT

    @pytest.mark.asyncio
    async def test_replay_leaves_existing_company(self, company_service, company_collection):
        # Arrange
        event = registered()
        await company_service.create_company_from_event(event)
        await company_service.update_company(str(event.company_id), CompanyUpdateRequest(name="Acme"))

        # Act
        created = await company_service.create_company_from_event(event)

        # Assert
        assert created is False
        assert len(company_collection.documents) == 1
        assert company_collection.documents[0]["name"] == "Acme"

    @pytest.mark.asyncio
    async def test_missing_country_is_unknown(self, company_service, company_collection):
        await company_service.create_company_from_event(registered(country_code=None))

        assert company_collection.documents[0]["countryCode"] == "XX"


class TestGetCompany:

    @pytest.mark.asyncio
    async def test_not_found(self, company_service):
        with pytest.raises(ErrorResponse) as exc_info:
            await company_service.get_company("missing")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_country_as_stored(self, company_service):
        company_id = await create(company_service, country_code="vnm")

        assert await company_service.get_company_country(company_id) == "VNM"


class TestListCompanies:

    @pytest.mark.asyncio
    async def test_pagination(self, company_service):
        for index in range(5):
            await create(company_service, email=f"hr{index}@acme.vn")

        page = await company_service.list_companies(page=1, size=2)

        assert len(page.items) == 2
        assert page.total_elements == 5
        assert page.total_pages == 3
        assert page.page == 1

    @pytest.mark.asyncio
    async def test_filters(self, company_service):
        vn_id = await create(company_service, country_code="VN", email="jobs@vietco.vn")
        await create(company_service, country_code="AUS", email="jobs@aussie.au")
        await company_service.update_company(vn_id, CompanyUpdateRequest(name="Viet (Co)"))

        by_country = await company_service.list_companies(country_code="aus")
        by_search = await company_service.list_companies(search="viet (co")

        assert [item.country_code for item in by_country.items] == ["AUS"]
        assert [item.id for item in by_search.items] == [vn_id]

    @pytest.mark.asyncio
    async def test_sort_by_name(self, company_service):
        for name in ("Charlie", "alpha", "Bravo"):
            company_id = await create(company_service, email=f"{name}@acme.vn")
            await company_service.update_company(company_id, CompanyUpdateRequest(name=name))

        page = await company_service.list_companies(sort_by="name", sort_dir="asc")

        assert [item.name for item in page.items] == ["Bravo", "Charlie", "alpha"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"page": -1},
        {"size": 0},
        {"size": 101},
        {"sort_by": "passwordHash"},
        {"sort_dir": "sideways"},
    ])
    async def test_invalid_parameters(self, company_service, kwargs):
        with pytest.raises(ErrorResponse) as exc_info:
            await company_service.list_companies(**kwargs)
        assert exc_info.value.status_code == 400


class TestUpdateCompany:

    @pytest.mark.asyncio
    async def test_update_without_country_change_publishes_nothing(self, company_service, publisher):
        company_id = await create(company_service)

        response = await company_service.update_company(
            company_id, CompanyUpdateRequest(name="Acme", city="Hanoi", country_code="VN")
        )

        assert response.name == "Acme"
        assert response.city == "Hanoi"
        assert publisher.on(COMPANY_COUNTRY_CHANGED) == []

    @pytest.mark.asyncio
    async def test_country_change_publishes_event(self, company_service, publisher, company_collection):
        # Arrange
        company_id = await create(company_service)

        # Act
        response = await company_service.update_company(
            company_id, CompanyUpdateRequest(country_code="AUS", name="Acme"), correlation_id="corr-7"
        )

        # Assert
        assert response.country_code == "AUS"
        assert response.name == "Acme"
        records = publisher.on(COMPANY_COUNTRY_CHANGED)
        assert len(records) == 1
        envelope, event = decode_envelope(records[0].value)
        assert envelope.correlation_id == "corr-7"
        assert str(event.company_id) == company_id
        assert event.previous_country_code == "VN"
        assert event.new_country_code == "AUS"
        assert event.changed_at == company_collection.documents[0]["countryChangedAt"]

    @pytest.mark.asyncio
    async def test_change_timestamps_strictly_increase(self, company_service, publisher):
        # Arrange
        company_id = await create(company_service)
        frozen = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

        # Act
        with patch("job_manager.services.company_service.utc_now", return_value=frozen):
            await company_service.update_company(company_id, CompanyUpdateRequest(country_code="AUS"))
            await company_service.update_company(company_id, CompanyUpdateRequest(country_code="SG"))

        # Assert
        first, second = [decode_envelope(r.value)[1] for r in publisher.on(COMPANY_COUNTRY_CHANGED)]
        assert first.changed_at == frozen
        assert second.changed_at == frozen + timedelta(milliseconds=1)
        assert second.previous_country_code == "AUS"

    @pytest.mark.asyncio
    async def test_concurrent_country_change_conflicts(self, company_service, publisher):
        company_id = await create(company_service)

        with patch.object(company_service.repository, "update_country", AsyncMock(return_value=False)):
            with pytest.raises(ErrorResponse) as exc_info:
                await company_service.update_company(company_id, CompanyUpdateRequest(country_code="AUS"))

        assert exc_info.value.status_code == 409
        assert publisher.on(COMPANY_COUNTRY_CHANGED) == []

    @pytest.mark.asyncio
    async def test_unknown_company(self, company_service):
        with pytest.raises(ErrorResponse) as exc_info:
            await company_service.update_company("missing", CompanyUpdateRequest(name="Acme"))
        assert exc_info.value.status_code == 404


class TestCompanyProfile:

    @pytest.mark.asyncio
    async def test_partial_profile_update(self, company_service):
        # Arrange
        company_id = await create(company_service)
        await company_service.update_company_profile(
            company_id, CompanyProfileUpdateRequest(about_us="We build things", industry="Software")
        )

        # Act
        profile = await company_service.update_company_profile(
            company_id, CompanyProfileUpdateRequest(company_size="11-50")
        )

        # Assert
        assert profile.about_us == "We build things"
        assert profile.industry == "Software"
        assert profile.company_size == "11-50"

    def test_profile_validation(self):
        with pytest.raises(ValueError):
            CompanyProfileUpdateRequest(company_size="huge")
        with pytest.raises(ValueError):
            CompanyProfileUpdateRequest(linkedin_url="https://example.com/acme")
