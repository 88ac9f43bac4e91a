from fastapi import APIRouter, Depends, status
from links2go.exceptions import NotFoundError
from links2go.schemas.url import (
    AnalyticsResponse,
    ErrorResponse,
    MessageResponse,
    ShortenRequest,
    ShortenResponse,
)
from links2go.services.url_service import URLService
from links2go.dependencies import get_url_service

router = APIRouter(tags=["urls"])


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def shorten_url(
    body: ShortenRequest,
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL, optionally with a custom code and a lifetime"""
    return await url_service.shorten(
        body.url,
        custom_code=body.custom_code,
        expires_in_seconds=body.expires_in,
    )


@router.get(
    "/analytics/{short_code}",
    response_model=AnalyticsResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def get_analytics(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get a short URL's record and its most recent clicks"""
    return await url_service.get_analytics(short_code)


@router.delete(
    "/{short_code}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_url(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Delete a short URL and its click history"""
    deleted = await url_service.delete_url(short_code)
    if not deleted:
        raise NotFoundError("URL not found")
    return MessageResponse(message="URL deleted successfully")
