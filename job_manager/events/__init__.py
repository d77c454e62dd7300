"""
Versioned event contract shared by every producer and consumer.
"""

from .contracts import (
    SCHEMA_VERSION,
    CompanyCountryChangedEvent,
    CompanyRegisteredEvent,
    EventDecodeError,
    EventEnvelope,
    build_envelope,
    decode_envelope,
    encode_envelope,
)
from .topics import COMPANY_COUNTRY_CHANGED, COMPANY_REGISTERED, dead_letter_topic

__all__ = [
    "SCHEMA_VERSION",
    "CompanyCountryChangedEvent",
    "CompanyRegisteredEvent",
    "EventDecodeError",
    "EventEnvelope",
    "build_envelope",
    "decode_envelope",
    "encode_envelope",
    "COMPANY_COUNTRY_CHANGED",
    "COMPANY_REGISTERED",
    "dead_letter_topic",
]
