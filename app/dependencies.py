from typing import Optional

from fastapi import Request

from app.config import Settings, settings as default_settings
from app.domain.services.build_service import BuildService
from app.domain.services.execution_service import ExecutionService
from app.domain.services.registry_service import RegistryService
from app.infrastructure.engine.base_engine import ContainerEngine
from app.infrastructure.engine.docker_engine import DockerEngine


def build_registry(
    engine: Optional[ContainerEngine] = None,
    settings: Optional[Settings] = None,
) -> RegistryService:
    """Wire a registry with its build pipeline and execution gate over one engine."""
    settings = settings or default_settings
    engine = engine or DockerEngine(settings.DOCKER_BINARY)
    return RegistryService(
        BuildService(engine, settings),
        ExecutionService(engine, settings),
    )


def get_registry(request: Request) -> RegistryService:
    return request.app.state.registry
