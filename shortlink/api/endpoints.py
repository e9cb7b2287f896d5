"""
FastAPI Endpoints for the Short Link Registry

Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Translating registry exceptions into HTTP responses
- Delegating to the registry and the redirect/stats services

Route order matters: the catch-all redirect route is declared last so that
/shorten and /stats are matched first.
"""

from fastapi import APIRouter, Request, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from shortlink.api.schemas import (
    BatchItemResult,
    BatchShortenRequest,
    BatchShortenResponse,
    ShortenRequest,
    ShortenResponse,
    StatsListResponse,
    StatsResponse,
)
from shortlink.core.exceptions import (
    InvalidShortcodeError,
    InvalidURLError,
    InvalidValidityError,
    ShortCodeExpiredError,
    ShortCodeNotFoundError,
    ShortcodeTakenError,
    URLShortenerException,
)
from shortlink.core.rate_limit import limiter, RATE_LIMITS
from shortlink.core.registry_manager import get_registry
from shortlink.core.validators import sanitize_short_code
from shortlink.services.redirect_service import RedirectService
from shortlink.services.stats_service import StatsService
from shortlink.services.url_registry import URLRecord, URLRegistry


router = APIRouter()


def _to_response(record: URLRecord) -> ShortenResponse:
    return ShortenResponse(
        short_code=record.shortcode,
        short_url=record.short_url,
        original_url=record.original_url,
        created_at=record.created_at,
        expires_at=record.expires_at,
    )


def _sanitize_or_400(short_code: str) -> str:
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{short_code}'. Short codes must be 3-20 alphanumeric characters."
        )
    return sanitized_code


async def _create(registry: URLRegistry, body: ShortenRequest) -> URLRecord:
    shortcode = body.shortcode.strip() if body.shortcode else None
    return await registry.create_short_url(
        body.url,
        validity_minutes=body.validity,
        custom_shortcode=shortcode,
    )


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL, optional validity and optional custom shortcode"
)
@limiter.limit(RATE_LIMITS["shorten"])
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    registry: URLRegistry = Depends(get_registry)
) -> ShortenResponse:
    """
    Create a new short URL.

    Raises:
        HTTPException 400: Invalid URL, validity or shortcode format
        HTTPException 409: Custom shortcode already in use
        HTTPException 429: If rate limit exceeded
    """
    try:
        record = await _create(registry, body)
    except (InvalidURLError, InvalidValidityError, InvalidShortcodeError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ShortcodeTakenError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return _to_response(record)


@router.post(
    "/shorten/batch",
    response_model=BatchShortenResponse,
    summary="Create several short URLs",
    description="Shortens up to MAX_BATCH_SIZE URLs; each item succeeds or fails on its own"
)
@limiter.limit(RATE_LIMITS["batch"])
async def create_short_urls_batch(
    request: Request,
    body: BatchShortenRequest,
    registry: URLRegistry = Depends(get_registry)
) -> BatchShortenResponse:
    results = []
    for item in body.urls:
        try:
            record = await _create(registry, item)
        except URLShortenerException as e:
            results.append(BatchItemResult(success=False, error=str(e)))
        else:
            results.append(BatchItemResult(success=True, data=_to_response(record)))

    return BatchShortenResponse(results=results)


@router.get(
    "/stats",
    response_model=StatsListResponse,
    summary="List all URLs with statistics",
    description="Returns every tracked short URL (expired ones flagged) with totals"
)
@limiter.limit(RATE_LIMITS["stats"])
async def list_url_stats(
    request: Request,
    registry: URLRegistry = Depends(get_registry)
) -> StatsListResponse:
    return StatsListResponse(**StatsService(registry).list_stats())


@router.get(
    "/stats/{short_code}",
    response_model=StatsResponse,
    summary="Get URL statistics",
    description="Returns statistics for a short URL including its click history"
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_url_stats(
    short_code: str,
    request: Request,
    registry: URLRegistry = Depends(get_registry)
) -> StatsResponse:
    """
    Get statistics for a short URL.

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not tracked
    """
    short_code = _sanitize_or_400(short_code)

    stats = StatsService(registry).get_stats(short_code)
    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found"
        )

    return StatsResponse(**stats)


@router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the original long URL"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    short_code: str,
    request: Request,
    registry: URLRegistry = Depends(get_registry)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The Referer header is recorded as the click source.

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not found
        HTTPException 410: If short code has expired
    """
    short_code = _sanitize_or_400(short_code)

    redirect_service = RedirectService(registry)
    try:
        original_url = await redirect_service.get_redirect_url(
            short_code,
            referrer=request.headers.get("Referer"),
        )
    except ShortCodeNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except ShortCodeExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=str(e)
        )

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_302_FOUND
    )
