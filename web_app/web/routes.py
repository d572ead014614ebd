"""Public routes: redirects, info lookups and the load balancer health check."""

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from ..api.schemas import URLInfoResponse
from ..errors import error_response

router = APIRouter()


# Registered before /{short_code} so "health" is never treated as a code
@router.get("/health", include_in_schema=False)
async def health_check_web(request: Request):
    """Health check endpoint (simple version for load balancers)."""
    service = request.app.state.service

    health = await service.health_check()

    if health["overall"]:
        return {"status": "healthy"}
    return error_response(
        "ServiceUnavailable", "Service unhealthy", status.HTTP_503_SERVICE_UNAVAILABLE
    )


@router.get("/info/{short_code}", response_model=URLInfoResponse)
async def url_info(request: Request, short_code: str):
    """Get information about a short URL without following it."""
    service = request.app.state.service

    info = await service.info(short_code)

    return URLInfoResponse(**info)


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the original URL."""
    service = request.app.state.service

    # Counts the click; unknown and expired codes raise and become 404 / 410
    original_url = await service.resolve(short_code)

    # Temporary redirect so every visit reaches us and is counted
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
