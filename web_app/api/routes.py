"""API routes implementation."""

from typing import Optional

from fastapi import APIRouter, Request, Header, HTTPException, status
from datetime import datetime, timezone

from .schemas import (
    ShortenRequest,
    ShortenResponse,
    OwnerRequest,
    OwnerResponse,
    OwnerURLsResponse,
    URLInfoResponse,
    CollisionStatisticsResponse,
    HealthResponse,
    ErrorResponse,
)

router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Owner not found"},
        503: {"model": ErrorResponse, "description": "Collision or storage outage, try again"},
    },
    summary="Create short URL",
    description=(
        "Create a shortened URL. The authentication layer identifies the owner "
        "through the X-Owner-Id header; without it the URL is stored anonymously."
    ),
)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    x_owner_id: Optional[int] = Header(None),
):
    """Create a shortened URL."""
    service = request.app.state.service

    try:
        record = await service.shorten(body.url, owner_id=x_owner_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ShortenResponse.from_record(record)


@router.post(
    "/owners",
    response_model=OwnerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Email already registered"}},
    summary="Register owner",
)
async def register_owner(request: Request, body: OwnerRequest):
    """Register an account owner."""
    service = request.app.state.service

    owner = await service.register_owner(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return OwnerResponse.from_owner(owner)


@router.get(
    "/owners/{owner_id}/urls",
    response_model=OwnerURLsResponse,
    responses={404: {"model": ErrorResponse, "description": "Owner not found"}},
    summary="List owner's URLs",
    description="An owner's short URLs in creation order.",
)
async def list_owner_urls(request: Request, owner_id: int):
    service = request.app.state.service

    records = await service.list_records(owner_id)

    return OwnerURLsResponse(
        owner_id=owner_id,
        urls=[URLInfoResponse.from_record(r) for r in records],
        storage=service.selector.active_kind,
    )


@router.get(
    "/urls/{short_code}",
    response_model=URLInfoResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get URL information",
    description="Get information about a shortened URL without counting a click.",
)
async def get_url_info(request: Request, short_code: str):
    """Get information about a shortened URL."""
    service = request.app.state.service

    _, record = await service.get_record(short_code)

    return URLInfoResponse.from_record(record)


@router.get(
    "/stats/collisions",
    response_model=CollisionStatisticsResponse,
    summary="Collision statistics",
    description="Total stored URLs against distinct short codes.",
)
async def get_collision_statistics(request: Request):
    service = request.app.state.service

    stats = await service.collision_statistics()

    return CollisionStatisticsResponse(**stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check storage and cache health.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    def label(ok: bool) -> str:
        return "healthy" if ok else "unhealthy"

    return HealthResponse(
        status=label(health["overall"]),
        storage=health["storage"],
        primary=label(health["primary"]),
        fallback=label(health["fallback"]),
        cache=label(health["cache"]),
        timestamp=datetime.now(timezone.utc),
    )
