import asyncio
import os
from typing import Dict, List, Optional, Tuple

import pytest

from app.config import Settings
from app.dependencies import build_registry
from app.domain.services.registry_service import RegistryService
from app.infrastructure.engine.base_engine import ContainerEngine, OutputSink


class FakeEngine(ContainerEngine):
    """In-memory engine recording every call.

    Builds pause on `build_gate` when it is set and raise `build_error` when
    given. Runs emit `outputs[image]` (stdout, stderr, exit code), echoing
    stdin to stdout by default.
    """

    def __init__(self):
        self.builds: List[Tuple[str, str, List[str]]] = []
        self.staged: Dict[str, bytes] = {}
        self.runs: List[Tuple[str, bytes, float]] = []
        self.build_gate: Optional[asyncio.Event] = None
        self.build_error: Optional[Exception] = None
        self.run_error: Optional[Exception] = None
        self.outputs: Dict[str, Tuple[bytes, bytes, int]] = {}

    async def build(self, tag: str, context_dir: str, log_path: str) -> None:
        files = sorted(os.listdir(context_dir))
        self.builds.append((tag, context_dir, files))
        for name in files:
            with open(os.path.join(context_dir, name), "rb") as f:
                self.staged[name] = f.read()
        with open(log_path, "a") as log_file:
            log_file.write(f"Step 1/3 : building {tag}\n")
        if self.build_gate is not None:
            await self.build_gate.wait()
        if self.build_error is not None:
            raise self.build_error

    async def run(self, image: str, stdin: bytes, stdout: OutputSink, stderr: OutputSink, timeout: float) -> int:
        self.runs.append((image, stdin, timeout))
        if self.run_error is not None:
            raise self.run_error
        out, err, code = self.outputs.get(image, (stdin, b"", 0))
        await stdout.write(out)
        await stderr.write(err)
        return code


@pytest.fixture
def settings(tmp_path) -> Settings:
    build_root = tmp_path / "staging"
    log_dir = tmp_path / "logs"
    build_root.mkdir()
    log_dir.mkdir()
    return Settings(
        BUILD_ROOT=str(build_root),
        BUILD_LOG_DIR=str(log_dir),
        RUN_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def registry(engine: FakeEngine, settings: Settings) -> RegistryService:
    return build_registry(engine, settings)
