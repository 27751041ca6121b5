from datetime import datetime
from pydantic import BaseModel

from app.domain.entities.alias import Alias


class AliasResponse(BaseModel):
    name: str
    target: str
    url: str
    date: datetime

    @classmethod
    def from_alias(cls, alias: Alias) -> "AliasResponse":
        return cls(name=alias.name, target=alias.target, url=alias.url, date=alias.bound_at)
