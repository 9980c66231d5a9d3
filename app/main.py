import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.exceptions import ProxyError
from app.api.routes import instagram as instagram_routes
from app.models.instagram import ErrorResponse

logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.environment}


# /api/instagram-profile, /api/instagram-posts, /api/image-proxy
app.include_router(
    instagram_routes.router,
    prefix=settings.api_prefix,
    tags=["instagram"],
)


def run():
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
