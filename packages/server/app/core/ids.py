"""
Identifier generation.

eids are short human-typable codes (PREFIX-NNNN-L). Collisions are possible
and are resolved by the caller re-drawing; see services.organizations.
"""

from __future__ import annotations

import re
import secrets
import string
from typing import Collection

EID_PATTERN = re.compile(r"^[A-Z]+-\d{4}-[A-Z]$")


def generate_eid(prefix: str = "NX") -> str:
    """Draw a candidate eid such as NX-4821-K."""
    number = 1000 + secrets.randbelow(9000)
    letter = secrets.choice(string.ascii_uppercase)
    return f"{prefix}-{number}-{letter}"


def is_valid_eid(eid: str) -> bool:
    return bool(EID_PATTERN.match(eid))


def generate_resource_id(prefix: str, taken: Collection[str] = ()) -> str:
    """Unique within one org; re-drawn until it misses ``taken``."""
    while True:
        candidate = f"{prefix}-{secrets.token_hex(4)}"
        if candidate not in taken:
            return candidate


def request_id(eid: str, requester_id: str) -> str:
    """Storage key for a join request, derived from its uniqueness constraint."""
    return f"{eid}_{requester_id}"


def anonymous_identity() -> str:
    return f"anon-{secrets.token_hex(12)}"
