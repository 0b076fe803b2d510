from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from noteshub.core.config import settings
from noteshub.core.logging import setup_logging
from noteshub.core.exceptions import (
    NotesHubError,
    global_exception_handler,
    http_exception_handler,
    noteshub_exception_handler,
    validation_exception_handler,
)
from noteshub.api.v1 import auth, branches, discussion, files, profile, resources

# Setup Logging
setup_logging()
logger = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for the application.
    """
    from noteshub.db.init_db import init_db

    logger.info("startup", project=settings.PROJECT_NAME, storage=settings.STORAGE_BACKEND)
    await init_db()
    yield
    logger.info("shutdown")

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="SPPU study resources hub: per-subject notes and a live discussion room",
        lifespan=lifespan,
        docs_url=f"{settings.API_V1_STR}/docs",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception Handlers
    app.add_exception_handler(NotesHubError, noteshub_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/health", tags=["system"])
    async def health_check():
        """
        Public health check endpoint for load balancers.
        """
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    app.include_router(branches.router, prefix=f"{settings.API_V1_STR}/branches", tags=["catalog"])
    app.include_router(resources.router, prefix=f"{settings.API_V1_STR}/resources", tags=["catalog"])
    app.include_router(discussion.router, prefix=f"{settings.API_V1_STR}/discussion", tags=["discussion"])
    app.include_router(auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["auth"])
    app.include_router(profile.router, prefix=f"{settings.API_V1_STR}/profile", tags=["profile"])
    app.include_router(files.router, prefix="/files", tags=["files"])
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("noteshub.main:app", host="0.0.0.0", port=8000, reload=True)
