"""Tenant isolation for every core operation.

Records outside the actor's tenant are reported exactly like absent ones,
so callers outside the owning tenant learn nothing about their existence.
"""

from dataclasses import dataclass
from typing import Optional

from lending.core.errors import ErrorCode, forbidden, not_found
from lending.models.models import Role

ADMIN_ROLES = (Role.ADMIN.value, Role.SUPER_ADMIN.value)


@dataclass(frozen=True)
class Actor:
    """Verified identity handed over by the authorization layer."""

    member_id: int
    tenant_id: Optional[int]
    role: str = Role.MEMBER.value

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_global(self) -> bool:
        return self.tenant_id is None and self.role == Role.SUPER_ADMIN.value


def scope_of(actor: Actor) -> Optional[int]:
    """Tenant the actor is confined to, or None for a global super-admin."""
    if actor.tenant_id is not None:
        return actor.tenant_id
    if actor.is_global:
        return None
    raise forbidden("Actor must be associated with a tenant",
                    code=ErrorCode.TENANT_CONTEXT_REQUIRED)


def require_tenant(actor: Actor) -> int:
    """Tenant under which child records may be created."""
    if actor.tenant_id is None:
        raise forbidden("Actor must be associated with exactly one tenant to create records",
                        code=ErrorCode.TENANT_CONTEXT_REQUIRED)
    return actor.tenant_id


def can_access(actor: Actor, tenant_id: Optional[int]) -> bool:
    scope = scope_of(actor)
    return scope is None or scope == tenant_id


def ensure_visible(actor: Actor, record, resource: str):
    if record is None or not can_access(actor, record.tenant_id):
        raise not_found(resource)
    return record
