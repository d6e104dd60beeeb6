from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from fittrack.api.activities import router as activities_router
from fittrack.core.config import Settings, settings as default_settings
from fittrack.core.errors import NotInitialized, PersistenceError, StorageUnavailable
from fittrack.core.logger import setup_logger
from fittrack.storage.activity_store import ActivityStore


def create_app(store: Optional[ActivityStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around one ActivityStore.

    The store is opened when the app starts and closed when it shuts down.
    When no store is given, one is built from `settings.database_url`.
    """
    settings = settings or default_settings
    setup_logger(settings.log_level)
    store = store or ActivityStore(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.init()
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="fittrack", lifespan=lifespan)
    app.state.store = store

    # Allow CORS for local frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StorageUnavailable)
    @app.exception_handler(NotInitialized)
    async def storage_unavailable(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        logger.error(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(activities_router)

    @app.get("/")
    def root():
        return {"message": "fittrack backend is running"}

    return app


# uvicorn fittrack.main:app
app = create_app()
