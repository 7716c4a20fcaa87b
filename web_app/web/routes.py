"""Redirect route: GET /{short_code}."""

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import RedirectResponse

router = APIRouter()


@router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    """Keep browsers' favicon requests away from the short code route."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Must stay the last route: it matches every single-segment path
@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the original URL.

    The click is recorded by a background task after the redirect is built;
    errors map to 400/404 through the app's exception handlers.
    """
    resolver = request.app.state.resolver

    record = await resolver.resolve(short_code)

    return RedirectResponse(url=record.original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
