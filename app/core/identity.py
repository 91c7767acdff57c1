# app/core/identity.py
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException


class Role(str, Enum):
    USER = "USER"
    SUPERVISOR = "SUPERVISOR"
    WORKER = "WORKER"


@dataclass(frozen=True)
class Actor:
    """Caller identity as handed over by the upstream session layer."""

    identity: str
    role: Role
    display_name: str


def get_actor(
    x_identity: str | None = Header(default=None),
    x_role: str | None = Header(default=None),
    x_display_name: str | None = Header(default=None),
) -> Actor:
    if not x_identity or not x_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    try:
        role = Role(x_role.upper())
    except ValueError:
        raise HTTPException(status_code=401, detail="Unknown role")
    return Actor(identity=x_identity, role=role, display_name=x_display_name or x_identity)


def require_role(*roles: Role):
    """Dependency admitting only callers whose role is in ``roles``."""

    def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(status_code=403, detail="Access denied")
        return actor

    return _check
