"""
Authorization Resolver - decides whose approval queue a caller may see or act on.

The role -> approval type table below is the only source of truth for
"who may see/decide what". Managers only ever reach their own queue; admins
may read any manager queue but never decide.
"""
import logging
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ecotrack.errors import Forbidden, InvalidInput, Unauthenticated
from ecotrack.schemas.approval import Caller, Role

logger = logging.getLogger(__name__)


MANAGER_ROLES = frozenset({
    Role.INVENTORY_MANAGER,
    Role.LOGISTICS_MANAGER,
    Role.SUSTAINABILITY_MANAGER,
    Role.FINANCE_MANAGER,
})

ROLE_APPROVAL_TYPES: Mapping[Role, Tuple[str, ...]] = MappingProxyType({
    Role.INVENTORY_MANAGER: ("spoilage_action",),
    Role.LOGISTICS_MANAGER: ("route_optimization",),
    Role.SUSTAINABILITY_MANAGER: ("carbon_verification",),
    Role.FINANCE_MANAGER: ("cost_approval",),
})

DEFAULT_ADMIN_ROLE = Role.INVENTORY_MANAGER


def _as_manager_role(value: Optional[str]) -> Optional[Role]:
    """Return the manager Role named by value, or None if it isn't one"""
    try:
        role = Role(value)
    except ValueError:
        return None
    return role if role in MANAGER_ROLES else None


def approval_types_for(role: Role) -> Tuple[str, ...]:
    return ROLE_APPROVAL_TYPES.get(role, ())


def resolve_readable_role(caller: Optional[Caller], requested_role: Optional[str] = None) -> Role:
    """
    Return the single manager role whose queue applies to this call.

    Args:
        caller: Authenticated caller, or None
        requested_role: Optional role override from the query string

    Raises:
        Unauthenticated: no caller
        Forbidden: manager asking for another queue, or a non-manager/non-admin caller
        InvalidInput: admin asking for something that isn't a manager role
    """
    if caller is None:
        raise Unauthenticated("Authentication required")

    own_role = _as_manager_role(caller.role)
    if own_role is not None:
        if requested_role and requested_role != own_role.value:
            logger.warning(
                f"User {caller.user_id} ({caller.role}) tried to read the {requested_role} queue"
            )
            raise Forbidden("Managers can only access their own queue")
        return own_role

    if caller.role == Role.ADMIN.value:
        if not requested_role:
            return DEFAULT_ADMIN_ROLE
        target = _as_manager_role(requested_role)
        if target is None:
            raise InvalidInput(f"Invalid role '{requested_role}'. Must be one of {sorted(r.value for r in MANAGER_ROLES)}.")
        return target

    logger.warning(f"User {caller.user_id} with role '{caller.role}' denied access to approvals")
    raise Forbidden("Not authorized to access approvals")


def ensure_manager_role(caller: Optional[Caller]) -> Role:
    """Return the caller's manager role; admins and everyone else are refused"""
    if caller is None:
        raise Unauthenticated("Authentication required")
    role = _as_manager_role(caller.role)
    if role is None:
        raise Forbidden("Only managers can decide approvals")
    return role


def ensure_admin(caller: Optional[Caller]) -> Caller:
    if caller is None:
        raise Unauthenticated("Authentication required")
    if caller.role != Role.ADMIN.value:
        raise Forbidden("Only admins can perform this action")
    return caller
