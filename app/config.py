from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Identifier namespace shared by the registry and the transport layer
ALIAS_PREFIX = "@"
TRIGGER_PREFIX = "/trigger/"
BIND_PREFIX = "/bind/"


class Settings(BaseSettings):
    APP_NAME: str = Field("foag", alias="APP_NAME")

    # Container engine
    DOCKER_BINARY: str = Field("docker", alias="DOCKER_BINARY")
    IMAGE_PREFIX: str = Field("foag", alias="IMAGE_PREFIX")
    RUN_TIMEOUT_SECONDS: float = Field(30.0, alias="RUN_TIMEOUT_SECONDS", gt=0)

    # Build staging and log sinks - system temp dir when unset
    BUILD_ROOT: Optional[str] = Field(None, alias="BUILD_ROOT")
    BUILD_LOG_DIR: Optional[str] = Field(None, alias="BUILD_LOG_DIR")

    ALLOWED_CORS_ORIGINS: str = Field("*", alias="ALLOWED_CORS_ORIGINS")
    LOG_LEVEL: str = Field("INFO", alias="LOG_LEVEL")

    HOST: str = Field("0.0.0.0", alias="HOST")
    PORT: int = Field(8080, alias="PORT")

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

    @property
    def cors_origins_list(self) -> List[str]:
        if self.ALLOWED_CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_CORS_ORIGINS.split(",")]

    def image_name(self, deployment_id: str) -> str:
        """Image handle for a deployment: prefix plus the first 16 chars of its id."""
        return f"{self.IMAGE_PREFIX}-{deployment_id[:16]}"


settings = Settings()
