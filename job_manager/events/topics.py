"""
Kafka topic names. The event type of an envelope equals the topic it is published on.
"""

COMPANY_REGISTERED = "company.registered"
COMPANY_COUNTRY_CHANGED = "company.country.changed"

DEAD_LETTER_SUFFIX = ".DLT"


def dead_letter_topic(topic: str) -> str:
    """company.registered -> company.registered.DLT"""
    return f"{topic}{DEAD_LETTER_SUFFIX}"
