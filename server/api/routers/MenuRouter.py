"""Menu router: aggregated delivery-platform menu served from the file cache."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from services.menu.MenuCache import MenuCache
from shared.dependencies.auth import verify_api_key

menu_router = APIRouter(prefix="/api/menu", tags=["Menu"])


@menu_router.get("")
async def get_menu(request: Request, refresh: bool = False) -> JSONResponse:
    """Return the cached menu, refreshing it when stale.

    A forced refresh (refresh=true) requires the admin API key.

    Raises:
        HTTPException: 401 for an unauthorised forced refresh, 502 if the refresh fails.
    """
    if refresh:
        await verify_api_key(request)
    menu_cache: MenuCache = request.app.state.menu_cache
    try:
        menu = await menu_cache.do_get_menu(force_refresh=refresh)
    except Exception as e:
        request.app.state.logging.error("Menu refresh failed: %s", e)
        raise HTTPException(status_code=502, detail="Menu is temporarily unavailable.")
    return JSONResponse(content=menu.model_dump(exclude_none=True))
