"""
Parsing and validation of the link tracking command.
"""
from typing import Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError


DEFAULT_COMMAND = "track"

_url_adapter = TypeAdapter(AnyUrl)


def parse_track_command(
    text: Optional[str],
    command: str = DEFAULT_COMMAND,
    bot_username: Optional[str] = None,
) -> Optional[str]:
    """
    Extract the URL argument from a tracking command.

    The first whitespace-separated token must be ``/<command>`` or
    ``/<command>@<bot_username>``. Everything after the first run of
    whitespace is the argument.

    Args:
        text: Raw message text
        command: Command name without the leading slash
        bot_username: Bot username accepted after ``@`` (case-insensitive)

    Returns:
        None if the text is not the tracking command, otherwise the stripped
        argument (possibly empty)

    Examples:
        >>> parse_track_command("/track https://example.com")
        'https://example.com'
        >>> parse_track_command("/track")
        ''
        >>> parse_track_command("hello") is None
        True
    """
    if not text:
        return None

    parts = text.strip().split(maxsplit=1)
    if not parts:
        return None

    head = parts[0]
    if not head.startswith("/"):
        return None

    name, _, mention = head[1:].partition("@")
    if name.lower() != command.lower():
        return None
    if mention and (not bot_username or mention.lower() != bot_username.lower()):
        return None

    return parts[1].strip() if len(parts) > 1 else ""


def is_valid_url(candidate: Optional[str]) -> bool:
    """
    Check that a candidate is a well-formed absolute URL.

    Args:
        candidate: Text supplied by the user

    Returns:
        True if the candidate parses as an absolute URL with a scheme
    """
    if not candidate or any(ch.isspace() for ch in candidate):
        return False

    scheme, sep, rest = candidate.partition(":")
    if not sep or not scheme or not rest:
        return False

    try:
        _url_adapter.validate_python(candidate)
    except ValidationError:
        return False
    return True
