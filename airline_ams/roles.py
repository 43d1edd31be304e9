import enum
from typing import Optional

from fastapi import Depends, Header

from .exceptions import AuthenticationError, ForbiddenError


class Role(str, enum.Enum):
    MANAGEMENT = "Management"
    CUSTOMER = "Customer"
    PILOT = "Pilot"
    TECHNICIAN = "Technician"


class Capability(str, enum.Enum):
    RESERVE_SEAT = "reserve_seat"
    RECORD_REPAIR = "record_repair"
    REQUEST_MAINTENANCE = "request_maintenance"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.MANAGEMENT: frozenset(),
    Role.CUSTOMER: frozenset({Capability.RESERVE_SEAT}),
    Role.TECHNICIAN: frozenset({Capability.RECORD_REPAIR}),
    Role.PILOT: frozenset({Capability.REQUEST_MAINTENANCE}),
}


def parse_role(value: Optional[str]) -> Role:
    if not value:
        raise AuthenticationError("Missing user role")
    for role in Role:
        if role.value.lower() == value.strip().lower():
            return role
    raise AuthenticationError(f"Unknown user role: {value}")


def can(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[role]


async def get_current_role(x_user_role: Optional[str] = Header(default=None)) -> Role:
    return parse_role(x_user_role)


def require(capability: Capability):
    """Route dependency: resolves the caller's role and checks one capability."""

    async def checker(role: Role = Depends(get_current_role)) -> Role:
        if not can(role, capability):
            raise ForbiddenError(f"{role.value} users cannot {capability.value.replace('_', ' ')}")
        return role

    return checker
