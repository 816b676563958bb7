import time
import uuid
from pathlib import PurePosixPath

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from docstore.core.config import Settings, get_settings
from docstore.core.errors import DocstoreError
from docstore.core.logging import bind_request_id, clear_context, configure_logging, get_logger
from docstore.models.database import COLLECTION_FILE, CollectionStore
from docstore.models.file import UploadStore
from docstore.models.user import UserStore
from docstore.routers import auth, data, files

logger = get_logger(__name__)


class UploadFiles(StaticFiles):
    """Static view of the uploads directory that never exposes the metadata array."""

    async def get_response(self, path, scope):
        name = PurePosixPath(path).name
        if path == COLLECTION_FILE or name.startswith(".data-"):
            raise StarletteHTTPException(status_code=404)
        return await super().get_response(path, scope)


async def docstore_error_handler(request: Request, exc: DocstoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed", path=request.url.path, error=exc.message, detail=exc.detail)
    else:
        logger.info("request rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    # the static mount needs its directory before the first request
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title=settings.app_name)

    collections = CollectionStore(settings.storage_root, strict_filters=settings.strict_filters)
    app.state.settings = settings
    app.state.collections = collections
    app.state.uploads = UploadStore(collections)
    app.state.users = UserStore(settings.storage_root, locks=collections.locks)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        clear_context()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        bind_request_id(request_id)

        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(DocstoreError, docstore_error_handler)

    # include our routers
    app.include_router(auth.router)
    app.include_router(files.router)
    app.include_router(data.router)

    app.mount("/uploads", UploadFiles(directory=settings.uploads_dir), name="uploads")

    logger.info(
        "docstore ready",
        storage_root=str(settings.storage_root),
        require_auth=settings.require_auth,
        strict_filters=settings.strict_filters,
    )
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "docstore.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
