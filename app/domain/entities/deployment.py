import threading
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from app.config import TRIGGER_PREFIX
from app.domain.exceptions import InvalidTransitionError
from app.utils.fingerprint import fingerprint


class DeploymentStatus(str, Enum):
    BUILDING = "BUILDING"
    READY = "READY"
    FAILED = "FAILED"


class Deployment(BaseModel):
    """One uploaded function and its build state.

    The public fields are fixed at construction. Status, image handle and
    build log location are written by the build task and read from request
    handlers, so they live behind a per-instance lock.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    language: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    _source: bytes = PrivateAttr(default=b"")
    _status: DeploymentStatus = PrivateAttr(default=DeploymentStatus.BUILDING)
    _image: str = PrivateAttr(default="")
    _build_log: Optional[str] = PrivateAttr(default=None)
    _history: List[DeploymentStatus] = PrivateAttr(default_factory=lambda: [DeploymentStatus.BUILDING])
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @classmethod
    def create(cls, source: bytes, language: str) -> "Deployment":
        deployment = cls(id=fingerprint(source, language), language=language)
        deployment._source = source
        return deployment

    @property
    def source(self) -> bytes:
        return self._source

    @property
    def url(self) -> str:
        return TRIGGER_PREFIX + self.id

    @property
    def status(self) -> DeploymentStatus:
        with self._lock:
            return self._status

    @property
    def ready(self) -> bool:
        return self.status == DeploymentStatus.READY

    @property
    def image(self) -> str:
        with self._lock:
            return self._image

    @property
    def build_log(self) -> Optional[str]:
        with self._lock:
            return self._build_log

    @property
    def history(self) -> List[DeploymentStatus]:
        with self._lock:
            return list(self._history)

    def attach_build_log(self, location: str) -> None:
        with self._lock:
            if self._build_log is not None:
                raise InvalidTransitionError(
                    "build log already attached", {"deployment_id": self.id}
                )
            self._build_log = location

    def mark_ready(self, image: str) -> None:
        with self._lock:
            self._transition(DeploymentStatus.READY)
            self._image = image

    def mark_failed(self) -> None:
        with self._lock:
            self._transition(DeploymentStatus.FAILED)

    def _transition(self, target: DeploymentStatus) -> None:
        # caller holds the lock
        if self._status != DeploymentStatus.BUILDING:
            raise InvalidTransitionError(
                f"cannot move from {self._status.value} to {target.value}",
                {"deployment_id": self.id},
            )
        self._status = target
        self._history.append(target)
