import re

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit_trail.core.audit import get_audit_recorder
from audit_trail.db.session import get_db
from audit_trail.models.company import Company
from audit_trail.models.org import Org
from audit_trail.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate
from audit_trail.services.audit.recorder import AuditRecorder

router = APIRouter()


def _normalize_cnpj(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if not digits:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CNPJ invalido",
        )
    return digits


def _get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found",
        )
    return company


def _save(recorder: AuditRecorder, detail: str = "Company already exists for this org") -> None:
    try:
        recorder.save()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


@router.post("", response_model=CompanyOut)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> CompanyOut:
    if not db.query(Org).filter(Org.id == payload.org_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )
    data = payload.model_dump(exclude_none=True)
    data["cnpj"] = _normalize_cnpj(data["cnpj"])
    company = Company(**data)
    db.add(company)
    _save(recorder)
    db.refresh(company)
    return CompanyOut.model_validate(company)


@router.get("", response_model=list[CompanyOut])
def list_companies(
    db: Session = Depends(get_db),
    org_id: int | None = Query(default=None),
    cnpj: str | None = Query(default=None),
    razao_social: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    limit: int = Query(default=1000, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[CompanyOut]:
    query = db.query(Company)
    if org_id is not None:
        query = query.filter(Company.org_id == org_id)
    if cnpj:
        query = query.filter(Company.cnpj == _normalize_cnpj(cnpj))
    if razao_social:
        query = query.filter(Company.razao_social.ilike(f"%{razao_social}%"))
    if is_active is not None:
        query = query.filter(Company.is_active == is_active)
    companies = query.order_by(Company.id).offset(offset).limit(limit).all()
    return [CompanyOut.model_validate(company) for company in companies]


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: int, db: Session = Depends(get_db)) -> CompanyOut:
    return CompanyOut.model_validate(_get_company_or_404(db, company_id))


@router.patch("/{company_id}", response_model=CompanyOut)
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> CompanyOut:
    company = _get_company_or_404(db, company_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("is_active") is None:
        data.pop("is_active", None)
    if "cnpj" in data and data["cnpj"] is not None:
        data["cnpj"] = _normalize_cnpj(data["cnpj"])
    for key, value in data.items():
        setattr(company, key, value)
    _save(recorder)
    db.refresh(company)
    return CompanyOut.model_validate(company)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> None:
    company = _get_company_or_404(db, company_id)
    db.delete(company)
    _save(recorder, detail="Company could not be deleted")
