from typing import List

from fastapi import APIRouter, Depends, Query

from app.config import BIND_PREFIX
from app.dependencies import get_registry
from app.domain.exceptions import DeploymentNotFoundError
from app.domain.services.registry_service import RegistryService
from app.schemas.alias import AliasResponse

router = APIRouter(tags=["aliases"])


@router.api_route(BIND_PREFIX + "{identifier}", methods=["GET", "POST"], response_model=AliasResponse)
async def bind(
    identifier: str,
    to: str = Query("", description="Alias name to (re)bind"),
    registry: RegistryService = Depends(get_registry),
):
    """Point alias `to` at the deployment named by `identifier`."""
    deployment = registry.resolve(identifier)
    if deployment is None:
        raise DeploymentNotFoundError(identifier)
    return AliasResponse.from_alias(registry.bind(to, deployment))


@router.get("/listAlias", response_model=List[AliasResponse])
async def list_aliases(registry: RegistryService = Depends(get_registry)):
    return [AliasResponse.from_alias(a) for a in registry.list_aliases()]
