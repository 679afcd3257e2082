"""Shared request dependencies."""
from fastapi import Depends, Header
from typing import Optional

from taskflow_admin.services.mongodb.tenant_namespace import (
    PhysicalCollectionName,
    resolve_physical_name,
    validate_tenant_id,
)


async def get_tenant_id(x_org_id: Optional[str] = Header(None, alias="X-Org-Id")) -> str:
    """Tenant id of the caller; authentication upstream sets the header."""
    return validate_tenant_id(x_org_id)


async def get_physical_collection(
    collection: str,
    tenant_id: str = Depends(get_tenant_id)
) -> PhysicalCollectionName:
    """Resolve the ``{collection}`` path parameter to the tenant's collection."""
    return resolve_physical_name(tenant_id, collection)
