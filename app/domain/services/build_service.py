"""Build pipeline - turns a submitted deployment into a runnable image in the background."""
import asyncio
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional

from app.config import Settings, settings as default_settings
from app.domain.entities.deployment import Deployment, DeploymentStatus
from app.domain.exceptions import BuildLogNotFoundError
from app.infrastructure.engine.base_engine import ContainerEngine
from app.infrastructure.engine.recipes import BuildRecipe, get_recipe

logger = logging.getLogger(__name__)


class BuildService:
    def __init__(self, engine: ContainerEngine, settings: Optional[Settings] = None):
        self.engine = engine
        self.settings = settings or default_settings
        # latest build per id, for wait()
        self._tasks: Dict[str, asyncio.Task] = {}
        # every build still running, including ones superseded by a resubmission
        self._live: Dict[asyncio.Task, Deployment] = {}

    def build(self, deployment: Deployment) -> None:
        """Start building `deployment` and return immediately.

        The log sink is allocated and recorded on the deployment before the
        background task is scheduled, so a log request issued right after
        this call always finds it. Every failure ends in FAILED status; none
        are raised to the caller.
        """
        try:
            log_path = self._allocate_log(deployment)
        except OSError as e:
            logger.error(f"Failed to allocate build log for {deployment.id}: {e}")
            deployment.mark_failed()
            return
        deployment.attach_build_log(log_path)

        task = asyncio.get_running_loop().create_task(self._run_build(deployment, log_path))
        self._tasks[deployment.id] = task
        self._live[task] = deployment
        task.add_done_callback(lambda t, key=deployment.id: self._forget(key, t))

    async def wait(self, deployment_id: str) -> None:
        """Block until the in-flight build for `deployment_id`, if any, finishes."""
        task = self._tasks.get(deployment_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self) -> None:
        live = list(self._live.items())
        if not live:
            return
        for task, _ in live:
            task.cancel()
        await asyncio.gather(*(task for task, _ in live), return_exceptions=True)

        # a task cancelled before its first step never reaches its own handler
        for _, deployment in live:
            if deployment.status == DeploymentStatus.BUILDING:
                deployment.mark_failed()
                await asyncio.to_thread(self._append_log, deployment.build_log, "build cancelled\n")
        logger.info(f"Cancelled {len(live)} in-flight build(s)")

    async def read_log(self, deployment: Deployment) -> bytes:
        location = deployment.build_log
        if location is None:
            raise BuildLogNotFoundError(deployment.id)
        try:
            return await asyncio.to_thread(Path(location).read_bytes)
        except OSError:
            raise BuildLogNotFoundError(deployment.id)

    def _forget(self, deployment_id: str, task: asyncio.Task) -> None:
        self._live.pop(task, None)
        # a resubmission may already have replaced the entry
        if self._tasks.get(deployment_id) is task:
            del self._tasks[deployment_id]

    def _allocate_log(self, deployment: Deployment) -> str:
        # synchronous: the location must be recorded before build() returns
        fd, path = tempfile.mkstemp(
            prefix=f"{self.settings.APP_NAME}-{deployment.id[:16]}-",
            suffix=".log",
            dir=self.settings.BUILD_LOG_DIR,
        )
        os.close(fd)
        return path

    def _stage(self, deployment: Deployment, recipe: BuildRecipe) -> str:
        staging_dir = tempfile.mkdtemp(prefix=f"{deployment.id[:16]}-", dir=self.settings.BUILD_ROOT)
        Path(staging_dir, recipe.source_filename).write_bytes(deployment.source)
        Path(staging_dir, "Dockerfile").write_text(recipe.dockerfile)
        return staging_dir

    async def _run_build(self, deployment: Deployment, log_path: str) -> None:
        image = self.settings.image_name(deployment.id)
        logger.info(f"Starting build {image} ({deployment.language})")
        staging_dir = None
        try:
            recipe = get_recipe(deployment.language)
            if recipe is None:
                await asyncio.to_thread(
                    self._append_log, log_path, f"no build recipe for language {deployment.language!r}\n"
                )
                logger.error(f"Failed to build {image}: unknown language {deployment.language!r}")
                deployment.mark_failed()
                return

            staging_dir = await asyncio.to_thread(self._stage, deployment, recipe)
            await self.engine.build(image, staging_dir, log_path)
        except asyncio.CancelledError:
            deployment.mark_failed()
            logger.warning(f"Build {image} cancelled")
            await asyncio.to_thread(self._append_log, log_path, "build cancelled\n")
            raise
        except Exception as e:
            deployment.mark_failed()
            logger.exception(f"Failed to build {image} ({deployment.language})")
            await asyncio.to_thread(self._append_log, log_path, f"build failed: {e}\n")
        else:
            deployment.mark_ready(image)
            logger.info(f"Built image {image} ({deployment.language})")
        finally:
            if staging_dir is not None:
                await asyncio.to_thread(shutil.rmtree, staging_dir, ignore_errors=True)

    def _append_log(self, log_path: str, message: str) -> None:
        try:
            with open(log_path, "a") as log_file:
                log_file.write(message)
        except OSError as e:
            logger.warning(f"Could not write to build log {log_path}: {e}")
