"""Repository for Tenant model operations."""

from sqlalchemy.orm import Session
from app.models.tenant import Tenant


class TenantRepository:
    """Repository for Tenant model operations"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, tenant_id: int) -> bool:
        """
        Check whether an agency exists without loading the row.

        Args:
            tenant_id: Tenant ID

        Returns:
            True if the tenant exists
        """
        return self.db.query(Tenant.id).filter(Tenant.id == tenant_id).first() is not None
