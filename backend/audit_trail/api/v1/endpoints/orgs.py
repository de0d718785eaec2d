from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit_trail.core.audit import get_audit_recorder
from audit_trail.db.session import get_db
from audit_trail.models.org import Org
from audit_trail.schemas.org import OrgCreate, OrgOut, OrgUpdate
from audit_trail.services.audit.recorder import AuditRecorder

router = APIRouter()


def _slugify(value: str) -> str:
    slug = []
    last_was_dash = False
    for char in value.strip().lower():
        if char.isalnum():
            slug.append(char)
            last_was_dash = False
        else:
            if not last_was_dash:
                slug.append("-")
                last_was_dash = True
    text = "".join(slug).strip("-")
    return text or "org"


def _get_org_or_404(db: Session, org_id: int) -> Org:
    org = db.query(Org).filter(Org.id == org_id).first()
    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )
    return org


def _save(recorder: AuditRecorder, detail: str = "Organization slug already in use") -> None:
    try:
        recorder.save()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


@router.post("", response_model=OrgOut)
def create_org(
    payload: OrgCreate,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> OrgOut:
    org = Org(name=payload.name, slug=payload.slug or _slugify(payload.name))
    db.add(org)
    _save(recorder)
    db.refresh(org)
    return OrgOut.model_validate(org)


@router.get("", response_model=list[OrgOut])
def list_orgs(db: Session = Depends(get_db)) -> list[OrgOut]:
    orgs = db.query(Org).order_by(Org.id).limit(50).all()
    return [OrgOut.model_validate(org) for org in orgs]


@router.get("/{org_id}", response_model=OrgOut)
def get_org(org_id: int, db: Session = Depends(get_db)) -> OrgOut:
    return OrgOut.model_validate(_get_org_or_404(db, org_id))


@router.patch("/{org_id}", response_model=OrgOut)
def update_org(
    org_id: int,
    payload: OrgUpdate,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> OrgOut:
    org = _get_org_or_404(db, org_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(org, key, value)
    _save(recorder)
    db.refresh(org)
    return OrgOut.model_validate(org)


@router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_org(
    org_id: int,
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> None:
    org = _get_org_or_404(db, org_id)
    db.delete(org)
    _save(recorder, detail="Organization still has companies")
