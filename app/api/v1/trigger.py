import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.config import TRIGGER_PREFIX
from app.dependencies import get_registry
from app.domain.entities.deployment import DeploymentStatus
from app.domain.exceptions import DeploymentNotFoundError, FaasError, NotReadyError
from app.domain.services.registry_service import RegistryService
from app.middleware.error_handling import error_payload
from app.utils.streams import QueueSink, relay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trigger"])


@router.api_route(TRIGGER_PREFIX + "{identifier}", methods=["GET", "POST"])
async def trigger(
    identifier: str,
    request: Request,
    registry: RegistryService = Depends(get_registry),
):
    """Run a deployment with the request body as stdin, streaming its output back.

    Not found and not ready are reported with their own status codes before
    the response starts; failures after that are appended to the stream.
    """
    deployment = registry.resolve(identifier)
    if deployment is None:
        raise DeploymentNotFoundError(identifier)
    current_status = deployment.status
    if current_status != DeploymentStatus.READY:
        raise NotReadyError(deployment.id, current_status.value)

    stdin = await request.body()
    sink = QueueSink()

    async def execute() -> None:
        try:
            # run what was checked above, even if a resubmission has since replaced it
            await registry.executor.run(deployment, stdin, sink, sink)
        except FaasError as e:
            logger.warning(f"Trigger {identifier} failed: {e.detail}")
            await sink.write(error_payload(e).model_dump_json().encode() + b"\n")
        finally:
            await sink.close()

    return StreamingResponse(relay(sink, execute()), media_type="application/octet-stream")
