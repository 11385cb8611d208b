from __future__ import annotations

import base64
import binascii
import hmac
from datetime import datetime, timezone
from typing import Mapping, Optional, Tuple


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_basic_authorization(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode an ``Authorization: Basic ...`` header into (username, password)."""
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def constant_time_compare(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def check_basic_credentials(users: Mapping[str, str], username: str, password: str) -> bool:
    # Walk every entry so the timing does not reveal which usernames exist.
    matched = False
    for known_user, known_password in users.items():
        user_ok = constant_time_compare(username, known_user)
        password_ok = constant_time_compare(password, known_password)
        matched |= user_ok & password_ok
    return matched
