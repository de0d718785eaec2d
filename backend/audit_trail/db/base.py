from sqlalchemy.orm import DeclarativeBase

from audit_trail.services.audit.changes import track_prior_values


class Base(DeclarativeBase):
    pass


track_prior_values(Base)
