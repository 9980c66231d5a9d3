import logging
from urllib.parse import urlparse

from app.core.exceptions import ForbiddenDomainError, ValidationError

logger = logging.getLogger(__name__)

# Matched as substrings of the hostname so the many Instagram CDN
# subdomains (scontent-xxx.cdninstagram.com, *.fbcdn.net) all pass.
ALLOWED_DOMAINS = (
    "instagram.com",
    "cdninstagram.com",
    "fbcdn.net",
    "scontent",
)

ALLOWED_SCHEMES = {"http", "https"}


def parse_image_url(url: str) -> str:
    """Parse ``url`` and return its lowercased hostname.

    Raises:
        ValidationError: If the URL cannot be parsed, is not http(s), or has
            no hostname.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as exc:
        raise ValidationError("Invalid URL format") from exc

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        raise ValidationError("Invalid URL format")
    return hostname


def is_allowed_host(hostname: str) -> bool:
    return any(domain in hostname for domain in ALLOWED_DOMAINS)


def ensure_allowed_image_url(url: str) -> str:
    """Validate an image URL against the media allow-list.

    Returns:
        The hostname of the allowed URL.

    Raises:
        ValidationError: If the URL is malformed.
        ForbiddenDomainError: If the hostname is not on the allow-list.
    """
    hostname = parse_image_url(url)
    if not is_allowed_host(hostname):
        logger.warning("Blocked attempt to proxy unauthorized domain: %s", hostname)
        raise ForbiddenDomainError("Forbidden: Domain not allowed")
    return hostname
