"""API routes implementation."""

from fastapi import APIRouter, Request, status
from datetime import datetime, timezone
from typing import Optional

from .schemas import (
    ShortenRequest,
    ShortenResponse,
    URLInfoResponse,
    StatsResponse,
    CleanupRequest,
    CleanupResponse,
    HealthResponse,
    ErrorResponse,
)
from shortlink.common.links import public_base_url

router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or short code"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        503: {"model": ErrorResponse, "description": "No unique code available or storage down"},
        504: {"model": ErrorResponse, "description": "Operation timed out"},
    },
    summary="Create short URL",
    description="Create a shortened URL with an optional lifetime and custom short code.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service
    config = request.app.state.config

    base_url = public_base_url(
        headers=request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
    )

    result = await service.shorten(
        original_url=body.url,
        expires_in_days=body.expires_in_days,
        custom_code=body.custom_code,
        base_url=base_url,
    )

    return ShortenResponse(**result)


@router.get(
    "/urls/{short_code}",
    response_model=URLInfoResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get URL information",
    description="Get information about a shortened URL. Does not count a click.",
)
async def get_url_info(request: Request, short_code: str):
    """Get information about a shortened URL."""
    service = request.app.state.service

    info = await service.info(short_code)

    return URLInfoResponse(**info)


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Get statistics",
    description="Get service-wide statistics and the most recently created URLs.",
)
async def get_statistics(request: Request):
    """Get service statistics."""
    service = request.app.state.service

    stats = await service.stats()

    return StatsResponse(**stats)


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Purge expired URLs",
    description="Delete expired URLs. Nothing is deleted unless includeExpired is true.",
)
async def cleanup(request: Request, body: Optional[CleanupRequest] = None):
    """Purge expired mappings."""
    service = request.app.state.service
    body = body or CleanupRequest()

    result = await service.cleanup(
        include_expired=body.include_expired,
        older_than_days=body.older_than_days,
    )

    return CleanupResponse(**result)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
