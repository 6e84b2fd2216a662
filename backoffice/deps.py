from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from backoffice.core.config import TENANT_HEADER
from backoffice.core.database import get_db
from backoffice.core.request_context import set_request_context
from backoffice.models.tenant import Tenant

logger = logging.getLogger(__name__)


def _parse_tenant_id(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    raw = str(raw).strip()
    if not raw.isdigit():
        return None
    return int(raw)


def get_current_tenant_id(
    x_tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
    tenant_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> int:
    """Resolve the tenant from the tenant header (``X-Tenant-ID`` by default), falling back to ``?tenant_id=``."""
    raw = x_tenant_id if x_tenant_id is not None else tenant_id
    resolved = _parse_tenant_id(raw)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant ID is required")

    tenant = db.query(Tenant).filter(Tenant.id == resolved).first()
    if tenant is None or not tenant.is_active:
        logger.info("tenant rejected tenant_id=%s", resolved)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    set_request_context(tenant_id=str(resolved))
    return resolved
