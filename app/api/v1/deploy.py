from typing import List

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from app.dependencies import get_registry
from app.domain.services.registry_service import RegistryService
from app.schemas.deploy import DeploymentResponse

router = APIRouter(tags=["deployments"])


@router.post("/deploy", response_model=DeploymentResponse)
async def deploy(
    request: Request,
    lang: str = Query("", description="Language tag selecting the build recipe"),
    registry: RegistryService = Depends(get_registry),
):
    """Upload source code; the build continues in the background."""
    source = await request.body()
    deployment = await registry.deploy(lang, source)
    return DeploymentResponse.from_deployment(deployment)


@router.get("/describe/{identifier}", response_model=DeploymentResponse)
async def describe(identifier: str, registry: RegistryService = Depends(get_registry)):
    """Describe a deployment by id, alias or unambiguous id prefix."""
    return DeploymentResponse.from_deployment(registry.lookup(identifier))


@router.get("/logs/{identifier}")
async def logs(identifier: str, registry: RegistryService = Depends(get_registry)):
    """Raw build output."""
    content = await registry.build_log(identifier)
    return Response(content=content, media_type="text/plain")


@router.get("/list", response_model=List[DeploymentResponse])
async def list_deployments(registry: RegistryService = Depends(get_registry)):
    return [DeploymentResponse.from_deployment(d) for d in registry.list_deployments()]
