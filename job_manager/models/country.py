"""
Country codes and the auth shard each country's credentials live in
"""

import re
from typing import Dict, List, Optional

UNKNOWN_COUNTRY = "XX"

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2,3}$")

DEFAULT_SHARD = "auth_shard_others"

# shard key -> alpha-2 and alpha-3 codes routed to it
SHARD_COUNTRIES: Dict[str, List[str]] = {
    "auth_shard_vn": ["VN", "VNM"],
    "auth_shard_sg": ["SG", "SGP"],
    "auth_shard_asia": [
        "MY", "MYS", "TH", "THA", "PH", "PHL", "ID", "IDN",
        "JP", "JPN", "KR", "KOR", "CN", "CHN",
    ],
    "auth_shard_oceania": ["AU", "AUS", "NZ", "NZL"],
    "auth_shard_na": ["US", "USA", "CA", "CAN"],
    "auth_shard_eu": ["GB", "GBR", "DE", "DEU", "FR", "FRA", "NL", "NLD"],
}

ALL_SHARDS: List[str] = list(SHARD_COUNTRIES) + [DEFAULT_SHARD]

_COUNTRY_TO_SHARD: Dict[str, str] = {
    code: shard for shard, codes in SHARD_COUNTRIES.items() for code in codes
}


def normalize_country_code(code: Optional[str]) -> str:
    """Upper-case and trim; blank or missing becomes UNKNOWN_COUNTRY"""
    if code is None or not code.strip():
        return UNKNOWN_COUNTRY
    return code.strip().upper()


def is_valid_country_code(code: str) -> bool:
    return bool(COUNTRY_CODE_PATTERN.match(code))


def shard_for_country(code: Optional[str]) -> str:
    return _COUNTRY_TO_SHARD.get(normalize_country_code(code), DEFAULT_SHARD)
