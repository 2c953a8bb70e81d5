"""Telegram Mini App initData HMAC-SHA256 verification.

Decides whether an initData string sent by the Telegram WebApp SDK was
signed for our bot. Pure functions, no I/O.

Reference: https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

import hashlib
import hmac
import json
import re
import time
from urllib.parse import parse_qsl, urlencode

from .errors import ConfigurationError


WEBAPP_DATA_KEY = b"WebAppData"
HASH_RE = re.compile(r"[0-9a-fA-F]{64}")


def verify(init_data: str, bot_token: str | bytes) -> bool:
    """Return True iff init_data carries a valid hash for bot_token.

    Malformed input is an ordinary False. A missing bot token is a
    configuration problem and raises ConfigurationError.
    """
    if not bot_token:
        raise ConfigurationError("bot token is not configured")
    if not init_data or not isinstance(init_data, str):
        return False

    try:
        params = parse_init_data(init_data)
    except ValueError:
        return False

    received_hash = params.pop("hash", "")
    if not HASH_RE.fullmatch(received_hash):
        return False

    expected_hash = compute_hash(bot_token, build_data_check_string(params))
    received = bytes.fromhex(received_hash)
    expected = bytes.fromhex(expected_hash)

    if len(received) != len(expected):
        return False
    return hmac.compare_digest(received, expected)


def parse_init_data(init_data: str) -> dict[str, str]:
    """Parse the initData query string into a flat dict.

    Values are percent-decoded once. Raises ValueError on a broken query
    string or a repeated key.
    """
    result: dict[str, str] = {}
    if not init_data:
        return result
    for key, value in parse_qsl(init_data, keep_blank_values=True, strict_parsing=True):
        if key in result:
            raise ValueError(f"duplicate key: {key!r}")
        result[key] = value
    return result


def build_data_check_string(params: dict[str, str]) -> str:
    """Build the sorted newline-separated data-check-string for HMAC."""
    return "\n".join(f"{k}={v}" for k, v in sorted(params.items()))


def compute_hash(bot_token: str | bytes, data_check_string: str) -> str:
    """Compute the hex HMAC-SHA256 of data_check_string for bot_token.

    The secret key is HMAC-SHA256("WebAppData", bot_token).
    """
    if isinstance(bot_token, str):
        bot_token = bot_token.encode()
    secret_key = hmac.new(WEBAPP_DATA_KEY, bot_token, hashlib.sha256).digest()
    return hmac.new(
        secret_key, data_check_string.encode(), hashlib.sha256,
    ).hexdigest()


def sign_init_data(params: dict[str, str], bot_token: str | bytes) -> str:
    """Render params as an initData string with a valid hash appended."""
    signed = dict(params)
    signed["hash"] = compute_hash(bot_token, build_data_check_string(params))
    return urlencode(signed)


def extract_user_id(init_data: str) -> str | None:
    """Return user.id from already verified initData, as a string."""
    try:
        user = json.loads(parse_init_data(init_data).get("user", ""))
    except ValueError:
        return None
    if not isinstance(user, dict):
        return None
    user_id = user.get("id")
    # bool is an int subclass
    if isinstance(user_id, bool) or not isinstance(user_id, (int, str)) or user_id == "":
        return None
    return str(user_id)


def is_fresh(init_data: str, max_age_seconds: int, now: float | None = None) -> bool:
    """Check auth_date is no older than max_age_seconds."""
    try:
        auth_date = int(parse_init_data(init_data).get("auth_date", ""))
    except ValueError:
        return False
    if now is None:
        now = time.time()
    return now - auth_date <= max_age_seconds
