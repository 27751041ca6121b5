import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import aliases, deploy, health, trigger
from app.config import Settings, settings as default_settings
from app.dependencies import build_registry
from app.infrastructure.engine.base_engine import ContainerEngine
from app.middleware import ErrorHandlingMiddleware, LoggingMiddleware

logger = logging.getLogger(__name__)


def create_app(
    engine: Optional[ContainerEngine] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    registry = build_registry(engine, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.APP_NAME} controller ready")
        yield
        await registry.shutdown()

    app = FastAPI(
        title="Function Controller",
        description="Builds uploaded source into container images and runs them on demand",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.registry = registry

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # last added runs first: errors wrap logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware, enable_error_logging=True)

    # Mount routers
    app.include_router(health.router)
    app.include_router(deploy.router)
    app.include_router(aliases.router)
    app.include_router(trigger.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
