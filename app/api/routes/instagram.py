import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    InternalError,
    ProxyError,
    UpstreamNotFoundError,
    ValidationError,
)
from app.models.instagram import PostsResponse, ProfileResponse
from app.services.domain_guard import ensure_allowed_image_url
from app.services.instagram_api import InstagramApiClient
from app.services.normalizer import normalize_posts, normalize_profile

logger = logging.getLogger(__name__)
router = APIRouter()

IMAGE_CACHE_CONTROL = "public, max-age=604800, immutable"


def get_instagram_client(settings: Settings = Depends(get_settings)) -> InstagramApiClient:
    return InstagramApiClient(settings)


def cors_preflight(methods: str) -> Response:
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": methods,
            "Access-Control-Allow-Headers": "Content-Type",
        },
    )


async def read_username(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc

    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    if not body.get("username"):
        raise ValidationError("Username is required")
    return body


@router.post("/instagram-profile", response_model=ProfileResponse)
async def fetch_profile(
    request: Request,
    client: InstagramApiClient = Depends(get_instagram_client),
):
    body = await read_username(request)
    username = str(body["username"])

    try:
        raw_profile = await client.fetch_profile(username)
    except ProxyError:
        raise
    except Exception as e:
        logger.exception(f"Error fetching Instagram profile for {username}: {e}")
        raise InternalError("Failed to fetch Instagram profile") from e

    if not raw_profile:
        raise UpstreamNotFoundError("No profile data found")

    profile = normalize_profile(
        raw_profile,
        requested_username=username,
        provider=client.settings.instagram_api_provider,
    )
    logger.info(f"Profile fetched for {username}")
    return ProfileResponse(profile=profile)


@router.post("/instagram-posts", response_model=PostsResponse)
async def fetch_posts(
    request: Request,
    client: InstagramApiClient = Depends(get_instagram_client),
):
    body = await read_username(request)
    username = str(body["username"])
    max_id = body.get("max_id") or body.get("maxId") or ""

    try:
        data = await client.fetch_posts(username, max_id=str(max_id))
    except ProxyError:
        raise
    except Exception as e:
        logger.exception(f"Error fetching Instagram posts for {username}: {e}")
        raise InternalError("Failed to fetch Instagram posts") from e

    posts = normalize_posts(data, provider=client.settings.instagram_api_provider)
    logger.info(f"Fetched {len(posts)} posts for {username}")
    return PostsResponse(posts=posts, raw_response=data)


@router.get("/instagram-profile")
@router.get("/image-proxy")
async def proxy_image(
    url: Optional[str] = Query(None, description="Instagram media URL to proxy"),
    client: InstagramApiClient = Depends(get_instagram_client),
):
    if not url:
        raise ValidationError("Image URL is required")

    ensure_allowed_image_url(url)

    try:
        content, content_type = await client.fetch_image(url)
    except ProxyError:
        raise
    except Exception as e:
        logger.exception(f"Error proxying Instagram image: {e}")
        raise InternalError("Internal server error") from e

    return Response(
        content=content,
        media_type=content_type,
        headers={
            "Cache-Control": IMAGE_CACHE_CONTROL,
            "Access-Control-Allow-Origin": "*",
        },
    )


@router.options("/instagram-profile")
async def profile_preflight():
    return cors_preflight("GET, POST, OPTIONS")


@router.options("/instagram-posts")
async def posts_preflight():
    return cors_preflight("POST, OPTIONS")


@router.options("/image-proxy")
async def image_proxy_preflight():
    return cors_preflight("GET, OPTIONS")
