from typing import Optional

from fastapi import Depends, Header, HTTPException

from lending.models.models import Role
from lending.services.guard import Actor

ROLES = {r.value for r in Role}


def get_actor(x_actor_id: Optional[int] = Header(None),
              x_actor_role: str = Header(Role.MEMBER.value),
              x_tenant_id: Optional[int] = Header(None)) -> Actor:
    """Actor verified upstream by the authorization layer."""
    if x_actor_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    if x_actor_role not in ROLES:
        raise HTTPException(status_code=403, detail="Unknown role")
    return Actor(member_id=x_actor_id, tenant_id=x_tenant_id, role=x_actor_role)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return actor
