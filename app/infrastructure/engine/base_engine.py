"""Base container engine with the two operations the controller needs."""
from abc import ABC, abstractmethod
from typing import Optional, Protocol


class ContainerEngineError(Exception):
    """The engine could not complete a build or run."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class ContainerTimeoutError(ContainerEngineError):
    """A run exceeded its wall-clock budget and was killed."""


class OutputSink(Protocol):
    async def write(self, data: bytes) -> None: ...


class ContainerEngine(ABC):
    @abstractmethod
    async def build(self, tag: str, context_dir: str, log_path: str) -> None:
        """Build context_dir into an image tagged `tag`, appending all output to log_path."""

    @abstractmethod
    async def run(
        self,
        image: str,
        stdin: bytes,
        stdout: OutputSink,
        stderr: OutputSink,
        timeout: float,
    ) -> int:
        """Run a fresh container from `image` and return its exit code."""
