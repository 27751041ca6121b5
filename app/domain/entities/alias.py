from datetime import datetime, timezone

from pydantic import BaseModel, Field

from app.config import ALIAS_PREFIX, TRIGGER_PREFIX


class Alias(BaseModel):
    name: str
    target: str
    bound_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def url(self) -> str:
        return TRIGGER_PREFIX + ALIAS_PREFIX + self.name
