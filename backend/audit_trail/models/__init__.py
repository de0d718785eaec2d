from audit_trail.db.base import Base
from audit_trail.models.audit_log import AuditLog
from audit_trail.models.company import Company
from audit_trail.models.org import Org

__all__ = [
    "Base",
    "AuditLog",
    "Company",
    "Org",
]
