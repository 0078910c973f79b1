from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from services.halacious import Halacious
from services.pipeline import coerce_config
from services.representation import encode
from utils.negotiation import select_media_type
from utils.templates import expand_template


# -----------------------------------------------------------------------------
# Dependency
# -----------------------------------------------------------------------------
def get_halacious(request: Request) -> Halacious:
    """FastAPI dependency to provide the application's Halacious facade."""
    return request.app.state.halacious


# -----------------------------------------------------------------------------
# HAL responses
# -----------------------------------------------------------------------------
def request_self(halacious: Halacious, request: Request, query: Optional[str] = None, absolute: bool = False) -> str:
    """Self href of the top level representation, expanding any query template."""
    path = request.url.path
    if absolute:
        path = halacious.build_absolute_url(request, path)
    if query:
        return expand_template(path + query, dict(request.query_params))
    return path


def is_eligible(halacious: Halacious, request: Request, entity: Any, status_code: int) -> bool:
    if not 200 <= status_code < 300:
        return False
    if isinstance(entity, (list, tuple, str, bytes, int, float, bool)) or entity is None:
        return False
    if halacious.settings.REQUIRE_HAL_JSON_ACCEPT_HEADER:
        return "application/hal+json" in request.headers.get("accept", "").lower()
    return True


async def hal_response(
    request: Request,
    entity: Any,
    config: Any = None,
    status_code: int = 200,
) -> JSONResponse:
    """
    Wraps an entity into a HAL representation configured by config and
    returns it as application/hal+json.
    Falls back to plain JSON when the request or entity isn't eligible.
    """
    halacious = get_halacious(request)

    media_type = None
    if is_eligible(halacious, request, entity, status_code):
        media_type = select_media_type(request.headers.get("accept"), halacious.settings.MEDIA_TYPES)

    if media_type is None:
        return JSONResponse(content=encode(entity), status_code=status_code)

    config = coerce_config(config)
    absolute = bool(config.absolute or halacious.settings.ABSOLUTE)
    self_href = request_self(halacious, request, config.query, absolute)

    # all representations for the request are built by this factory
    factory = halacious.factory(request)
    representation = factory.create(entity, self_href)
    representation = await halacious.transform_representation(config, representation)

    return JSONResponse(
        content=representation.to_json(),
        status_code=status_code,
        media_type=media_type,
    )
