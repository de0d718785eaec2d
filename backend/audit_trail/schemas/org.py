from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OrgCreate(BaseModel):
    name: str
    slug: Optional[str] = None


class OrgUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None


class OrgOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: Optional[str] = None
    created_at: datetime
