"""FastAPI server for the stamper registry."""

from __future__ import annotations

import logging
import os
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .. import __version__
from ..config import RegistrySettings
from ..security import RateLimiter, create_rate_limiter
from .errors import InternalError, InvalidArgumentError, RateLimitedError, RegistryError
from .service import PackageRegistry
from .storage import create_store

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class ContentRequest(BaseModel):
    content: Optional[str] = None


class WriteResponse(BaseModel):
    message: str
    owner: str
    name: str
    version: str
    hash: str


class SearchHitInfo(BaseModel):
    name: str
    value: str


class SearchResponse(BaseModel):
    query: str
    count: int
    results: list[SearchHitInfo]


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "malformed request"


def _content_of(body: Optional[ContentRequest]) -> Optional[str]:
    return body.content if body is not None else None


def create_app(
    settings: Optional[RegistrySettings] = None,
    *,
    registry: Optional[PackageRegistry] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Create the registry FastAPI application.

    Called without arguments (as the uvicorn factory) it reads its settings
    from the environment.
    """
    settings = settings or RegistrySettings.from_env()
    if registry is None:
        registry = PackageRegistry(create_store(settings))
    limiter = rate_limiter if rate_limiter is not None else create_rate_limiter(settings)

    app = FastAPI(
        title="Stamper Registry",
        description="Minimal registry of owner/name/version content blobs",
        version=__version__,
    )
    app.state.registry = registry
    app.state.rate_limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def guard(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = JSONResponse({"error": InternalError.default_message}, status_code=500)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.exception_handler(RegistryError)
    async def registry_error(request: Request, exc: RegistryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
            message = InternalError.default_message
        else:
            message = exc.message
        return JSONResponse({"error": message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": f"Invalid request: {_describe_validation(exc)}"},
            status_code=InvalidArgumentError.status_code,
        )

    def enforce_rate_limit(request: Request) -> None:
        caller = request.client.host if request.client else "anonymous"
        if not limiter.consume(caller):
            logger.warning("Rate limit exceeded for %s", caller)
            raise RateLimitedError()

    limited = [Depends(enforce_rate_limit)]

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "stamper-registry"}

    @app.post(
        "/packages/new",
        response_model=WriteResponse,
        status_code=201,
        dependencies=limited,
    )
    def create_package(
        response: Response,
        owner: Optional[str] = Query(None),
        name: Optional[str] = Query(None),
        version: Optional[str] = Query(None),
        body: Optional[ContentRequest] = None,
    ):
        result = registry.create_version(owner, name, version, _content_of(body))
        if not result.created:
            response.status_code = 200
        return WriteResponse(**result.to_dict())

    @app.put("/packages/update", response_model=WriteResponse, dependencies=limited)
    def update_package(
        owner: Optional[str] = Query(None),
        name: Optional[str] = Query(None),
        version: Optional[str] = Query(None),
        body: Optional[ContentRequest] = None,
    ):
        result = registry.update_version(owner, name, version, _content_of(body))
        return WriteResponse(**result.to_dict())

    @app.get("/packages/get", response_class=PlainTextResponse, dependencies=limited)
    def get_package(
        owner: Optional[str] = Query(None),
        name: Optional[str] = Query(None),
        version: Optional[str] = Query(None),
    ):
        fetched = registry.get_version(owner, name, version)
        return PlainTextResponse(
            fetched.package.content,
            headers={
                "x-timestamp": str(fetched.served_at),
                "x-sent": "true",
                "x-content-hash": fetched.package.content_hash,
            },
        )

    @app.get("/packages/search", response_model=SearchResponse, dependencies=limited)
    def search_packages(
        query: Optional[str] = Query(None),
        limit: Optional[str] = Query(None, description="Maximum number of results (default 10)"),
    ):
        return SearchResponse(**registry.search_packages(query, limit).to_dict())

    return app


def serve(settings: RegistrySettings, *, reload: bool = False) -> None:
    """Run the registry under uvicorn."""
    logger.info(
        "Stamper Registry API running on %s:%s (storage=%s)",
        settings.host, settings.port, settings.storage,
    )
    if reload:
        # The reloader re-imports the factory, which reads settings from the environment.
        os.environ.update({
            "STAMPER_STORAGE": settings.storage,
            "STAMPER_STORAGE_PATH": settings.storage_path,
            "STAMPER_RATE_LIMITER": settings.rate_limiter,
            "STAMPER_RATE_LIMIT": str(settings.rate_limit),
            "STAMPER_RATE_WINDOW": str(settings.rate_window),
            "STAMPER_CORS_ORIGINS": ",".join(settings.cors_origins),
        })
        uvicorn.run(
            "stamper.registry.server:create_app",
            host=settings.host,
            port=settings.port,
            reload=True,
            factory=True,
        )
        return
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    from ..config import load_settings

    serve(load_settings())
