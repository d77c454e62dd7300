"""
Event contracts and the JSON envelope they travel in.

Every record on every topic is a UTF-8 JSON object:

    {
      "schemaVersion": 1,
      "eventId": "...",
      "eventType": "company.registered",
      "source": "job-manager-auth",
      "occurredAt": "2026-01-01T00:00:00Z",
      "correlationId": "...",
      "data": {...}
    }

Keys are written sorted with compact separators so one event always encodes
to the same bytes. Timestamps are timezone-aware UTC; naive values are taken
as UTC. The record key is the company id so that all events of one company
land on one partition.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Type, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from job_manager.events.topics import COMPANY_COUNTRY_CHANGED, COMPANY_REGISTERED

SCHEMA_VERSION = 1


class EventDecodeError(ValueError):
    """Raised for payloads that can never be processed (poison messages)"""


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventModel(BaseModel):
    """Base for event payloads: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def partition_key(self) -> bytes:
        return str(self.company_id).encode("utf-8")


class CompanyRegisteredEvent(EventModel):
    """Emitted by auth once a company account is committed"""

    company_id: UUID
    email: str
    country_code: Optional[str] = None
    activation_token: Optional[str] = None
    registered_at: datetime

    @field_validator("registered_at")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return to_utc(value)

    @field_validator("country_code")
    @classmethod
    def normalize_country_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip().upper()


class CompanyCountryChangedEvent(EventModel):
    """Emitted by company after every committed country mutation"""

    company_id: UUID
    previous_country_code: str = Field(min_length=1)
    new_country_code: str = Field(min_length=1)
    changed_at: datetime

    @field_validator("changed_at")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return to_utc(value)

    @field_validator("previous_country_code", "new_country_code")
    @classmethod
    def normalize_country_code(cls, value: str) -> str:
        return value.strip().upper()


EVENT_TYPES: Dict[str, Type[EventModel]] = {
    COMPANY_REGISTERED: CompanyRegisteredEvent,
    COMPANY_COUNTRY_CHANGED: CompanyCountryChangedEvent,
}


class EventEnvelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schema_version: int
    event_id: UUID
    event_type: str
    source: str
    occurred_at: datetime
    correlation_id: Optional[str] = None
    data: Dict[str, Any]

    @field_validator("occurred_at")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


def build_envelope(
    event_type: str,
    event: EventModel,
    source: str,
    correlation_id: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> EventEnvelope:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    if not isinstance(event, EVENT_TYPES[event_type]):
        raise ValueError(f"{type(event).__name__} cannot be sent as {event_type}")

    return EventEnvelope(
        schema_version=SCHEMA_VERSION,
        event_id=uuid.uuid4(),
        event_type=event_type,
        source=source,
        occurred_at=occurred_at or datetime.now(timezone.utc),
        correlation_id=correlation_id,
        data=event.model_dump(mode="json", by_alias=True),
    )


def envelope_to_dict(envelope: EventEnvelope) -> Dict[str, Any]:
    return envelope.model_dump(mode="json", by_alias=True)


def encode_envelope(envelope: EventEnvelope) -> bytes:
    return json.dumps(
        envelope_to_dict(envelope),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def decode_envelope(raw: Union[bytes, str, None]) -> Tuple[EventEnvelope, EventModel]:
    """
    Parse a record value into its envelope and typed event.

    Raises:
        EventDecodeError: the payload is not valid JSON, is not an envelope,
            carries an unsupported schemaVersion or an unknown eventType,
            or its data does not match the event contract.
    """
    if raw is None:
        raise EventDecodeError("Empty record value")

    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventDecodeError(f"Record value is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise EventDecodeError("Record value is not a JSON object")

    try:
        envelope = EventEnvelope.model_validate(payload)
    except ValidationError as e:
        raise EventDecodeError(f"Invalid event envelope: {e.error_count()} error(s)") from e

    if envelope.schema_version > SCHEMA_VERSION or envelope.schema_version < 1:
        raise EventDecodeError(
            f"Unsupported schemaVersion {envelope.schema_version} (supported: {SCHEMA_VERSION})"
        )

    event_class = EVENT_TYPES.get(envelope.event_type)
    if event_class is None:
        raise EventDecodeError(f"Unknown eventType: {envelope.event_type}")

    try:
        event = event_class.model_validate(envelope.data)
    except ValidationError as e:
        raise EventDecodeError(
            f"Invalid {envelope.event_type} payload: {e.error_count()} error(s)"
        ) from e

    return envelope, event
