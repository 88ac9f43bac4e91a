from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from links2go.models.click import ClickEvent
from links2go.services.url_service import URLService
from links2go.dependencies import get_url_service

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    request: Request,
    url_service: URLService = Depends(get_url_service)
):
    """
    Redirect to the original URL.

    Flow:
    1. Look up the record (awaited)
    2. Check expiry (410 if lapsed, 404 if absent or inactive)
    3. Hand the click to a detached task (not awaited)
    4. Redirect immediately

    The user never waits for analytics writes, and a failed analytics
    write never turns a valid redirect into an error.
    """
    click = ClickEvent(
        ip=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )

    original_url = await url_service.resolve(short_code, click)

    return RedirectResponse(url=original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
