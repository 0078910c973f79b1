from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from routers import api, rels
from services.halacious import Halacious
from utils.errors import CONFIGURATION_ERRORS, HalError

port = int(os.environ.get("FASTAPIPORT", 8000))


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
async def hal_error_handler(request: Request, exc: HalError) -> JSONResponse:
    kind = "configuration" if isinstance(exc, CONFIGURATION_ERRORS) else "representation"
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "error": type(exc).__name__,
            "kind": kind,
        },
    )


# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------
def create_app(halacious: Optional[Halacious] = None) -> FastAPI:
    halacious = halacious or Halacious(settings)

    app = FastAPI(
        title="Halacious",
        description="HAL+JSON hypermedia representations for FastAPI services.",
        version="0.1.0",
    )
    halacious.app = app
    app.state.halacious = halacious

    app.add_exception_handler(HalError, hal_error_handler)

    app.include_router(router=rels.router, prefix=halacious.settings.RELS_PATH)
    if halacious.settings.AUTO_API:
        app.include_router(router=api.create_router(halacious.settings.API_PATH))

    return app


app = create_app()

# -----------------------------------------------------------------------------
# Entrypoint for `python main.py`
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
