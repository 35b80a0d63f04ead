"""Input validation for submitted links."""

from typing import Any
from urllib.parse import urlsplit

from linkbeam.errors import InvalidLinkError

MAX_LINK_LENGTH = 2048

# Checked textually, before any URL parsing
BLOCKED_SCHEMES = ("javascript:", "data:", "vbscript:")

ALLOWED_SCHEMES = ("http", "https")


def require_link(link: Any) -> str:
    """Ensure the submitted value is a non-empty string.

    Raises:
        InvalidLinkError: If missing, empty, or not a string.
    """
    if not link or not isinstance(link, str):
        raise InvalidLinkError("Link is required")
    return link


def sanitize_link(link: str) -> str:
    """Trim a link and reject script-capable schemes and oversized input.

    Args:
        link: Raw submitted link.

    Returns:
        Trimmed link.

    Raises:
        InvalidLinkError: If the scheme is blocked or the link is too long.
    """
    url = link.strip()
    if url.lower().startswith(BLOCKED_SCHEMES):
        raise InvalidLinkError("Invalid URL protocol")
    if len(url) > MAX_LINK_LENGTH:
        raise InvalidLinkError("URL is too long")
    return url


def is_valid_link(link: str) -> bool:
    """Check the link is an absolute http(s) URL with a host."""
    if not link or any(c.isspace() for c in link):
        return False
    try:
        parts = urlsplit(link)
        # Accessing port validates it
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in ALLOWED_SCHEMES and bool(parts.hostname)


def validate_link(link: Any) -> str:
    """Run every submission check in order.

    Returns:
        The sanitized link, ready to store.

    Raises:
        InvalidLinkError: With a reason safe to return to the submitter.
    """
    url = sanitize_link(require_link(link))
    if not is_valid_link(url):
        raise InvalidLinkError(
            "Invalid URL format. Please provide a valid http or https URL."
        )
    return url
