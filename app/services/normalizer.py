"""Normalization of upstream Instagram payloads into the public record schema.

Upstream providers return loosely shaped JSON: counts arrive as numbers or
strings, fields move between the top level and a nested ``user`` object, and
each provider names things differently. Every output field is resolved through
an ordered fallback chain of dotted paths, declared per provider in
:data:`PROVIDER_FIELD_CHAINS`. All accessors are total: malformed values fall
back to the field default instead of raising.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from app.models.instagram import PostRecord, ProfileRecord

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "instagram120"

_MISSING = object()
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_TRUE_STRINGS = {"true", "1", "yes"}

FieldChains = Dict[str, Sequence[str]]

PROVIDER_FIELD_CHAINS: Dict[str, Dict[str, FieldChains]] = {
    "instagram120": {
        "profile": {
            "username": ("username", "user.username"),
            "full_name": ("full_name", "name", "user.full_name"),
            "biography": ("biography", "bio", "user.biography"),
            "profile_pic_url": (
                "profile_pic_url",
                "profile_picture",
                "user.profile_pic_url_hd",
                "user.profile_pic_url",
            ),
            "followers_count": (
                "followers_count",
                "followers",
                "user.followers",
                "user.follower_count",
                "user.edge_followed_by.count",
            ),
            "following_count": (
                "following_count",
                "following",
                "user.following",
                "user.following_count",
                "user.edge_follow.count",
            ),
            "posts_count": (
                "posts_count",
                "media_count",
                "user.media_count",
                "user.edge_owner_to_timeline_media.count",
            ),
            "is_verified": ("is_verified", "verified", "user.is_verified"),
            "is_private": ("is_private", "private", "user.is_private"),
            "website": ("website", "external_url", "user.external_url"),
            "email": ("email", "public_email", "user.public_email"),
            "phone_number": ("phone_number", "contact_phone_number", "user.contact_phone_number"),
        },
        "post": {
            "id": ("id", "pk", "code"),
            "caption": ("caption", "text", "caption.text"),
            "timestamp": ("timestamp", "taken_at", "taken_at_timestamp"),
            "media_type": ("media_type", "type"),
            "media_url": ("media_url", "image_url", "images.0", "images.0.url"),
            "like_count": ("like_count", "likes", "edge_liked_by.count"),
            "comment_count": ("comment_count", "comments", "edge_media_to_comment.count"),
        },
    },
    "brightdata": {
        "profile": {
            "username": ("account", "username"),
            "full_name": ("profile_name", "full_name"),
            "biography": ("biography",),
            "profile_pic_url": ("profile_image_link", "profile_pic_url"),
            "followers_count": ("followers",),
            "following_count": ("following",),
            "posts_count": ("posts_count",),
            "is_verified": ("is_verified",),
            "is_private": ("is_private",),
            "website": ("external_url", "profile_url", "url"),
            "email": ("email_address", "business_email"),
            "phone_number": ("business_phone",),
        },
        "post": {
            "id": ("post_id", "id", "shortcode"),
            "caption": ("description", "caption"),
            "timestamp": ("date_posted", "timestamp"),
            "media_type": ("content_type", "media_type"),
            "media_url": ("image_url", "photos.0", "thumbnail"),
            "like_count": ("likes",),
            "comment_count": ("num_comments", "comments"),
        },
    },
}


def resolve_path(data: Any, path: str) -> Any:
    """Follow a dotted ``path`` through nested dicts and lists.

    Integer segments index into lists. Returns ``_MISSING`` when any segment
    cannot be followed.
    """
    current = data
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return _MISSING
            current = current[index]
        else:
            return _MISSING
    return current


def first_present(
    data: Any,
    chain: Sequence[str],
    accept: Optional[Callable[[Any], bool]] = None,
) -> Any:
    """Return the first non-null value found along ``chain``, or ``_MISSING``.

    When ``accept`` is given, values it rejects are skipped as if absent.
    """
    for path in chain:
        value = resolve_path(data, path)
        if value is _MISSING or value is None:
            continue
        if accept is not None and not accept(value):
            continue
        return value
    return _MISSING


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def coerce_count(value: Any) -> int:
    """Parse a count the way an integer-prefix parser would, floored at zero."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return 0
        parsed = int(match.group(1))
    else:
        return 0
    return max(0, parsed)


def coerce_text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return str(value)
    return default


def coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def coerce_timestamp(value: Any) -> Optional[Union[int, float, str]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


def _chains_for(provider: str, kind: str) -> FieldChains:
    tables = PROVIDER_FIELD_CHAINS.get(provider)
    if tables is None:
        logger.warning("Unknown provider %s, using %s field chains", provider, DEFAULT_PROVIDER)
        tables = PROVIDER_FIELD_CHAINS[DEFAULT_PROVIDER]
    return tables[kind]


def _text(data: Any, chains: FieldChains, field: str, default: str = "") -> str:
    value = first_present(data, chains[field], accept=is_scalar)
    if value is _MISSING:
        return default
    return coerce_text(value, default)


def _count(data: Any, chains: FieldChains, field: str) -> int:
    value = first_present(data, chains[field])
    return 0 if value is _MISSING else coerce_count(value)


def _flag(data: Any, chains: FieldChains, field: str) -> bool:
    value = first_present(data, chains[field])
    return False if value is _MISSING else coerce_flag(value)


def normalize_profile(
    raw: Any,
    requested_username: str = "",
    provider: str = DEFAULT_PROVIDER,
) -> ProfileRecord:
    """Map an upstream profile payload onto :class:`ProfileRecord`.

    Args:
        raw: The upstream JSON value, of any shape.
        requested_username: Used when the payload carries no username.
        provider: Key into :data:`PROVIDER_FIELD_CHAINS`.

    Returns:
        A fully populated record. ``raw_data`` holds ``raw`` unchanged.
    """
    chains = _chains_for(provider, "profile")
    followers = _count(raw, chains, "followers_count")
    posts = _count(raw, chains, "posts_count")

    return ProfileRecord(
        username=_text(raw, chains, "username", requested_username) or requested_username,
        full_name=_text(raw, chains, "full_name"),
        biography=_text(raw, chains, "biography"),
        profile_pic_url=_text(raw, chains, "profile_pic_url"),
        followers_count=followers,
        following_count=_count(raw, chains, "following_count"),
        posts_count=posts,
        media_count=posts,
        is_verified=_flag(raw, chains, "is_verified"),
        is_private=_flag(raw, chains, "is_private"),
        website=_text(raw, chains, "website"),
        email=_text(raw, chains, "email"),
        phone_number=_text(raw, chains, "phone_number"),
        follower_count=followers,
        raw_data=raw,
    )


def normalize_post(raw: Any, provider: str = DEFAULT_PROVIDER) -> PostRecord:
    """Map a single upstream post onto :class:`PostRecord`."""
    chains = _chains_for(provider, "post")
    timestamp = first_present(raw, chains["timestamp"], accept=is_scalar)

    return PostRecord(
        id=_text(raw, chains, "id"),
        caption=_text(raw, chains, "caption"),
        timestamp=None if timestamp is _MISSING else coerce_timestamp(timestamp),
        media_type=_text(raw, chains, "media_type", "image") or "image",
        media_url=_text(raw, chains, "media_url"),
        like_count=_count(raw, chains, "like_count"),
        comment_count=_count(raw, chains, "comment_count"),
        raw_data=raw,
    )


def extract_posts(data: Any) -> List[Any]:
    """Pull the post list out of a bare array or a ``posts``/``data`` wrapper."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("posts", "data"):
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def normalize_posts(data: Any, provider: str = DEFAULT_PROVIDER) -> List[PostRecord]:
    return [normalize_post(post, provider) for post in extract_posts(data)]
