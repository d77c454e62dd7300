"""Tests for the event envelope and its contracts"""
import json
import uuid
from datetime import datetime, timezone

import pytest

from job_manager.events.contracts import (
    SCHEMA_VERSION,
    CompanyCountryChangedEvent,
    CompanyRegisteredEvent,
    EventDecodeError,
    build_envelope,
    decode_envelope,
    encode_envelope,
    envelope_to_dict,
)
from job_manager.events.topics import COMPANY_COUNTRY_CHANGED, COMPANY_REGISTERED, dead_letter_topic

COMPANY_ID = uuid.UUID("5f0c3a9e-0a4b-4a63-9d0c-6f1f4c2b7a11")
CHANGED_AT = datetime(2026, 3, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)


@pytest.fixture
def country_changed():
    return CompanyCountryChangedEvent(
        company_id=COMPANY_ID,
        previous_country_code="VN",
        new_country_code="AUS",
        changed_at=CHANGED_AT,
    )


def _raw(**overrides):
    payload = {
        "schemaVersion": 1,
        "eventId": str(uuid.uuid4()),
        "eventType": COMPANY_COUNTRY_CHANGED,
        "source": "job-manager-company",
        "occurredAt": "2026-03-01T12:00:00Z",
        "correlationId": "corr-1",
        "data": {
            "companyId": str(COMPANY_ID),
            "previousCountryCode": "VN",
            "newCountryCode": "AUS",
            "changedAt": "2026-03-01T12:00:00Z",
        },
    }
    payload.update(overrides)
    return json.dumps(payload).encode("utf-8")


class TestEncode:

    def test_envelope_fields(self, country_changed):
        envelope = build_envelope(COMPANY_COUNTRY_CHANGED, country_changed, "job-manager-company", "corr-1")
        payload = json.loads(encode_envelope(envelope))

        assert payload["schemaVersion"] == SCHEMA_VERSION
        assert payload["eventType"] == COMPANY_COUNTRY_CHANGED
        assert payload["source"] == "job-manager-company"
        assert payload["correlationId"] == "corr-1"
        uuid.UUID(payload["eventId"])
        assert payload["data"] == {
            "companyId": str(COMPANY_ID),
            "previousCountryCode": "VN",
            "newCountryCode": "AUS",
            "changedAt": payload["data"]["changedAt"],
        }

    def test_encoding_is_compact_with_sorted_keys(self, country_changed):
        envelope = build_envelope(COMPANY_COUNTRY_CHANGED, country_changed, "job-manager-company")
        raw = encode_envelope(envelope)

        payload = json.loads(raw)
        assert raw == json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        assert encode_envelope(envelope) == raw

    def test_partition_key_is_company_id(self, country_changed):
        assert country_changed.partition_key() == str(COMPANY_ID).encode("utf-8")

    def test_event_type_must_match_event_class(self, country_changed):
        with pytest.raises(ValueError):
            build_envelope(COMPANY_REGISTERED, country_changed, "job-manager-company")

    def test_unknown_event_type_rejected(self, country_changed):
        with pytest.raises(ValueError):
            build_envelope("company.deleted", country_changed, "job-manager-company")


class TestDecode:

    def test_decode_round_trip_preserves_event(self, country_changed):
        envelope = build_envelope(COMPANY_COUNTRY_CHANGED, country_changed, "job-manager-company", "corr-1")

        decoded_envelope, event = decode_envelope(encode_envelope(envelope))

        assert decoded_envelope.event_id == envelope.event_id
        assert decoded_envelope.correlation_id == "corr-1"
        assert event == country_changed
        assert event.changed_at == CHANGED_AT

    def test_registered_event(self):
        registered = CompanyRegisteredEvent(
            company_id=COMPANY_ID,
            email="hr@acme.vn",
            country_code="vn",
            activation_token="token",
            registered_at=CHANGED_AT,
        )
        envelope = build_envelope(COMPANY_REGISTERED, registered, "job-manager-auth")

        _, event = decode_envelope(encode_envelope(envelope))

        assert isinstance(event, CompanyRegisteredEvent)
        assert event.country_code == "VN"
        assert envelope_to_dict(envelope)["data"]["activationToken"] == "token"

    def test_blank_registered_country_becomes_none(self):
        registered = CompanyRegisteredEvent(
            company_id=COMPANY_ID, email="hr@acme.vn", country_code="  ", registered_at=CHANGED_AT
        )
        assert registered.country_code is None

    def test_naive_timestamps_are_utc(self):
        raw = _raw(data={
            "companyId": str(COMPANY_ID),
            "previousCountryCode": "vn",
            "newCountryCode": "aus",
            "changedAt": "2026-03-01T12:00:00",
        })

        envelope, event = decode_envelope(raw)

        assert event.changed_at.tzinfo is not None
        assert event.changed_at == datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert event.previous_country_code == "VN"
        assert event.new_country_code == "AUS"
        assert envelope.occurred_at.tzinfo is not None

    def test_accepts_str_payload(self):
        envelope, _ = decode_envelope(_raw().decode("utf-8"))
        assert envelope.event_type == COMPANY_COUNTRY_CHANGED

    @pytest.mark.parametrize("raw", [
        None,
        b"",
        b"not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b"{}",
        b'{"schemaVersion": 1}',
    ])
    def test_malformed_payloads_are_poison(self, raw):
        with pytest.raises(EventDecodeError):
            decode_envelope(raw)

    @pytest.mark.parametrize("version", [0, 2, 99])
    def test_unsupported_schema_version(self, version):
        with pytest.raises(EventDecodeError, match="schemaVersion"):
            decode_envelope(_raw(schemaVersion=version))

    def test_unknown_event_type(self):
        with pytest.raises(EventDecodeError, match="Unknown eventType"):
            decode_envelope(_raw(eventType="company.deleted"))

    def test_data_not_matching_contract(self):
        with pytest.raises(EventDecodeError, match="Invalid company.country.changed"):
            decode_envelope(_raw(data={"companyId": "not-a-uuid", "newCountryCode": "AUS"}))

    def test_decode_error_is_value_error(self):
        assert issubclass(EventDecodeError, ValueError)


class TestTopics:

    def test_dead_letter_topic(self):
        assert dead_letter_topic(COMPANY_COUNTRY_CHANGED) == "company.country.changed.DLT"
