from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CompanyCreate(BaseModel):
    org_id: int
    cnpj: str
    razao_social: str
    uf: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyUpdate(BaseModel):
    cnpj: Optional[str] = None
    razao_social: Optional[str] = None
    uf: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    cnpj: str
    razao_social: str
    uf: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
