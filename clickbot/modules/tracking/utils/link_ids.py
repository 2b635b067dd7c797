"""
Link identifier generation.

Identifiers double as Telegram callback data, so they must stay URL-safe and
within the 64-byte callback_data limit.
"""
import re
from uuid import uuid4


MAX_CALLBACK_DATA_LENGTH = 64
LINK_ID_PATTERN = re.compile(r'^[0-9a-f]{32}$')


def new_link_id() -> str:
    """
    Generate a fresh opaque link identifier.

    Returns:
        32-character lowercase hex string

    Examples:
        >>> len(new_link_id())
        32
        >>> new_link_id() != new_link_id()
        True
    """
    return uuid4().hex


def is_valid_link_id(link_id: str) -> bool:
    """
    Check that a correlation token looks like an identifier we issued.

    Args:
        link_id: Token received from a button press

    Returns:
        True if the token has the expected shape
    """
    if not link_id or len(link_id.encode('utf-8')) > MAX_CALLBACK_DATA_LENGTH:
        return False
    return bool(LINK_ID_PATTERN.match(link_id))
