"""Process-wide directory of deployments and aliases.

Both maps are guarded by one lock; every public method takes it for the
shortest possible span and never awaits while holding it.
"""
import logging
import threading
from typing import Dict, List, Optional

from app.config import ALIAS_PREFIX
from app.domain.entities.alias import Alias
from app.domain.entities.deployment import Deployment
from app.domain.exceptions import DeploymentNotFoundError, InvalidInputError
from app.domain.services.build_service import BuildService
from app.domain.services.execution_service import ExecutionService
from app.infrastructure.engine.base_engine import OutputSink

logger = logging.getLogger(__name__)


class RegistryService:
    def __init__(self, builder: BuildService, executor: ExecutionService):
        self.builder = builder
        self.executor = executor
        self._deployments: Dict[str, Deployment] = {}
        self._aliases: Dict[str, Alias] = {}
        self._lock = threading.Lock()

    async def deploy(self, language: str, source: bytes) -> Deployment:
        """Register a new deployment and start its build.

        Returns while the build is still in flight. Resubmitting identical
        content replaces the previous entry under the same id.
        """
        if not language:
            raise InvalidInputError("language tag is required")

        deployment = Deployment.create(source, language)
        self.register(deployment)
        logger.info(f"Registered deployment {deployment.id} ({language}, {len(source)} bytes)")
        self.builder.build(deployment)
        return deployment

    def register(self, deployment: Deployment) -> None:
        with self._lock:
            self._deployments[deployment.id] = deployment

    def resolve(self, identifier: str) -> Optional[Deployment]:
        """Exact lookup by id, or by alias when `identifier` carries the alias marker."""
        if not identifier:
            raise InvalidInputError("identifier is required")

        with self._lock:
            if identifier.startswith(ALIAS_PREFIX):
                alias = self._aliases.get(identifier[len(ALIAS_PREFIX):])
                if alias is None:
                    return None
                identifier = alias.target
            return self._deployments.get(identifier)

    def find(self, partial: str) -> Optional[Deployment]:
        """Prefix lookup over all deployment ids.

        Linear in the number of deployments. Every candidate shares the same
        matched prefix length, so ties go to the most recently created one.
        """
        if not partial:
            raise InvalidInputError("identifier is required")

        best: Optional[Deployment] = None
        longest_match = 0
        with self._lock:
            candidates = list(self._deployments.values())
        for deployment in candidates:
            if not deployment.id.startswith(partial):
                continue
            if len(partial) > longest_match or (
                len(partial) == longest_match and deployment.created_at > best.created_at
            ):
                best = deployment
                longest_match = len(partial)
        return best

    def lookup(self, identifier: str) -> Deployment:
        deployment = self.resolve(identifier)
        if deployment is None and not identifier.startswith(ALIAS_PREFIX):
            deployment = self.find(identifier)
        if deployment is None:
            raise DeploymentNotFoundError(identifier)
        return deployment

    def bind(self, name: str, deployment: Deployment) -> Alias:
        if not name:
            raise InvalidInputError("alias name is required")
        if name.startswith(ALIAS_PREFIX):
            name = name[len(ALIAS_PREFIX):]
            if not name:
                raise InvalidInputError("alias name is required")

        alias = Alias(name=name, target=deployment.id)
        with self._lock:
            previous = self._aliases.get(name)
            self._aliases[name] = alias
        if previous is not None and previous.target != deployment.id:
            logger.info(f"Rebound alias {name}: {previous.target} -> {deployment.id}")
        else:
            logger.info(f"Bound alias {name} -> {deployment.id}")
        return alias

    async def run(
        self,
        identifier: str,
        stdin: bytes,
        stdout: OutputSink,
        stderr: OutputSink,
    ) -> None:
        deployment = self.resolve(identifier)
        if deployment is None:
            raise DeploymentNotFoundError(identifier)
        await self.executor.run(deployment, stdin, stdout, stderr)

    async def build_log(self, identifier: str) -> bytes:
        return await self.builder.read_log(self.lookup(identifier))

    def list_deployments(self) -> List[Deployment]:
        with self._lock:
            return list(self._deployments.values())

    def list_aliases(self) -> List[Alias]:
        with self._lock:
            return list(self._aliases.values())

    async def shutdown(self) -> None:
        await self.builder.shutdown()
