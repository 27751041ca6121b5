"""Docker CLI backed container engine."""
import asyncio
import logging
import uuid
from typing import Optional

from app.config import settings
from app.infrastructure.engine.base_engine import (
    ContainerEngine,
    ContainerEngineError,
    ContainerTimeoutError,
    OutputSink,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


class DockerEngine(ContainerEngine):
    def __init__(self, binary: Optional[str] = None):
        self.binary = binary or settings.DOCKER_BINARY

    async def build(self, tag: str, context_dir: str, log_path: str) -> None:
        with open(log_path, "ab") as log_file:
            try:
                process = await asyncio.create_subprocess_exec(
                    self.binary, "build", "-t", tag, context_dir,
                    stdout=log_file,
                    stderr=asyncio.subprocess.STDOUT,
                )
            except OSError as e:
                raise ContainerEngineError(f"failed to start {self.binary}: {e}")

            try:
                returncode = await process.wait()
            except asyncio.CancelledError:
                await self._kill(process)
                raise

        if returncode != 0:
            raise ContainerEngineError(
                f"{self.binary} build exited with status {returncode}", returncode
            )

    async def run(
        self,
        image: str,
        stdin: bytes,
        stdout: OutputSink,
        stderr: OutputSink,
        timeout: float,
    ) -> int:
        # every run gets its own container, removed on exit
        container_name = f"{image}-{uuid.uuid4().hex[:12]}"
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary, "run", "--rm", "-i", "--name", container_name, image,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ContainerEngineError(f"failed to start {self.binary}: {e}")

        try:
            await asyncio.wait_for(
                self._communicate(process, stdin, stdout, stderr), timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Run of {image} exceeded {timeout}s, killing {container_name}")
            await self._kill(process, container_name)
            raise ContainerTimeoutError(f"run exceeded {timeout}s timeout and was killed")
        except asyncio.CancelledError:
            await self._kill(process, container_name)
            raise

        return process.returncode

    async def _communicate(self, process, stdin: bytes, stdout: OutputSink, stderr: OutputSink) -> int:
        await asyncio.gather(
            self._feed(process, stdin),
            self._relay(process.stdout, stdout),
            self._relay(process.stderr, stderr),
        )
        return await process.wait()

    async def _feed(self, process, data: bytes) -> None:
        try:
            if data:
                process.stdin.write(data)
                await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Function exited before consuming its stdin")
        finally:
            process.stdin.close()

    async def _relay(self, reader: asyncio.StreamReader, sink: OutputSink) -> None:
        while True:
            chunk = await reader.read(CHUNK_SIZE)
            if not chunk:
                break
            await sink.write(chunk)

    async def _kill(self, process, container_name: Optional[str] = None) -> None:
        if process.returncode is None:
            process.kill()
            await process.wait()
        if container_name is None:
            return
        # killing the client does not always stop the container itself
        try:
            cleanup = await asyncio.create_subprocess_exec(
                self.binary, "rm", "-f", container_name,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await cleanup.wait()
        except OSError as e:
            logger.warning(f"Could not remove container {container_name}: {e}")
