from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from utils.hal import get_halacious, hal_response


async def api_root(request: Request):
    """Lists every route tagged with openapi_extra x-hal-api"""
    halacious = get_halacious(request)
    absolute = halacious.settings.ABSOLUTE

    def add_api_links(representation):
        for rel, href in halacious.api_links(request, absolute):
            representation.link(rel, href)

    return await hal_response(request, {}, add_api_links)


async def api_redirect(request: Request):
    # relative links on the client resolve against the trailing slash
    return RedirectResponse(url=get_halacious(request).settings.API_PATH + "/")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
def create_router(api_path: str) -> APIRouter:
    """API root mounted at the configured path, plus a redirect from the bare path"""
    router = APIRouter(
        tags=["API"],
    )
    router.add_api_route(api_path + "/", api_root, methods=["GET"], name="api_root")
    if api_path:
        router.add_api_route(api_path, api_redirect, methods=["GET"], name="api_redirect")
    return router
