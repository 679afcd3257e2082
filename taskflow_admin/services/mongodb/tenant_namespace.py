"""Tenant namespacing for MongoDB collection names.

All tenant collections live in one database, named ``<tenant_id>_<logical_name>``.
This module is the only place that builds those names; services downstream
take a :class:`PhysicalCollectionName` and never a raw string.
"""
import re
from dataclasses import dataclass
from typing import Optional

from taskflow_admin.services.errors import InvalidNameError, MissingTenantError

COLLECTION_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

# Underscore is the separator, so it can't appear inside a tenant id
TENANT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")

SEPARATOR = "_"


@dataclass(frozen=True)
class PhysicalCollectionName:
    """A tenant-scoped collection name as stored in MongoDB."""
    tenant_id: str
    logical_name: str

    @property
    def name(self) -> str:
        return f"{self.tenant_id}{SEPARATOR}{self.logical_name}"

    def __str__(self) -> str:
        return self.name


def validate_tenant_id(tenant_id: Optional[str]) -> str:
    """
    Check that a tenant id was supplied and is usable as a name prefix.

    Args:
        tenant_id: Tenant (organization) id

    Returns:
        The tenant id, stripped of surrounding whitespace
    """
    if tenant_id is None or not str(tenant_id).strip():
        raise MissingTenantError("Organization ID required")

    tenant_id = str(tenant_id).strip()
    if not TENANT_ID_PATTERN.match(tenant_id):
        raise InvalidNameError(
            "Organization ID must contain only letters, digits and hyphens"
        )
    return tenant_id


def validate_collection_name(logical_name: Optional[str]) -> str:
    """Check a logical collection name against the allowed character set."""
    if not logical_name or not isinstance(logical_name, str):
        raise InvalidNameError("Collection name is required")

    if not COLLECTION_NAME_PATTERN.match(logical_name):
        raise InvalidNameError(
            "Collection name must be alphanumeric with underscores only"
        )
    return logical_name


def tenant_prefix(tenant_id: str) -> str:
    """Prefix shared by every physical collection owned by a tenant."""
    return f"{validate_tenant_id(tenant_id)}{SEPARATOR}"


def resolve_physical_name(tenant_id: Optional[str], logical_name: Optional[str]) -> PhysicalCollectionName:
    """
    Resolve the physical collection for a tenant's logical collection.

    Args:
        tenant_id: Tenant (organization) id
        logical_name: User-facing collection name

    Returns:
        The tenant-scoped physical collection name
    """
    tenant_id = validate_tenant_id(tenant_id)
    logical_name = validate_collection_name(logical_name)
    return PhysicalCollectionName(tenant_id=tenant_id, logical_name=logical_name)


def strip_tenant_prefix(physical_name: str, tenant_id: str) -> Optional[str]:
    """
    Strip the exact ``<tenant_id>_`` prefix from a physical collection name.

    Returns None when the collection does not belong to the tenant, including
    the case where the remainder after the prefix would be empty.
    """
    prefix = tenant_prefix(tenant_id)
    if not physical_name.startswith(prefix):
        return None

    logical_name = physical_name[len(prefix):]
    return logical_name or None


def physical_from_existing(physical_name: str, tenant_id: str) -> Optional[PhysicalCollectionName]:
    """Wrap an enumerated collection name, if it belongs to the tenant."""
    logical_name = strip_tenant_prefix(physical_name, tenant_id)
    if logical_name is None:
        return None
    return PhysicalCollectionName(tenant_id=validate_tenant_id(tenant_id), logical_name=logical_name)
