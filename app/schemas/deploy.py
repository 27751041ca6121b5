from datetime import datetime
from pydantic import BaseModel

from app.domain.entities.deployment import Deployment, DeploymentStatus


class DeploymentResponse(BaseModel):
    id: str
    image: str
    date: datetime
    language: str
    url: str
    ready: bool
    status: DeploymentStatus

    @classmethod
    def from_deployment(cls, deployment: Deployment) -> "DeploymentResponse":
        status = deployment.status
        ready = status == DeploymentStatus.READY
        return cls(
            id=deployment.id,
            image=deployment.image if ready else "",
            date=deployment.created_at,
            language=deployment.language,
            url=deployment.url,
            ready=ready,
            status=status,
        )
