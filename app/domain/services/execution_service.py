import logging
from typing import Optional

from app.config import Settings, settings as default_settings
from app.domain.entities.deployment import Deployment, DeploymentStatus
from app.domain.exceptions import ExecutionError, ExecutionTimeoutError, NotReadyError
from app.infrastructure.engine.base_engine import (
    ContainerEngine,
    ContainerEngineError,
    ContainerTimeoutError,
    OutputSink,
)

logger = logging.getLogger(__name__)


class ExecutionService:
    """Runs ready deployments, one fresh container per call, bounded by a timeout."""

    def __init__(self, engine: ContainerEngine, settings: Optional[Settings] = None):
        self.engine = engine
        self.settings = settings or default_settings

    async def run(
        self,
        deployment: Deployment,
        stdin: bytes,
        stdout: OutputSink,
        stderr: OutputSink,
    ) -> None:
        current_status = deployment.status
        if current_status != DeploymentStatus.READY:
            raise NotReadyError(deployment.id, current_status.value)

        # READY is terminal and set together with the image handle
        image = deployment.image
        timeout = self.settings.RUN_TIMEOUT_SECONDS
        try:
            returncode = await self.engine.run(image, stdin, stdout, stderr, timeout)
        except ContainerTimeoutError as e:
            logger.warning(f"Run of {deployment.id} timed out: {e}")
            raise ExecutionTimeoutError(
                f"failed to run: {e}", {"deployment_id": deployment.id, "timeout": timeout}
            )
        except ContainerEngineError as e:
            logger.error(f"Run of {deployment.id} failed: {e}")
            raise ExecutionError(f"failed to run: {e}", {"deployment_id": deployment.id})

        if returncode != 0:
            raise ExecutionError(
                f"failed to run: exit status {returncode}",
                {"deployment_id": deployment.id, "exit_code": returncode},
            )
