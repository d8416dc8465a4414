"""
Access policy: which roles may perform which action on which resource.

The policy is a plain lookup table keyed by (resource, action). It is
evaluated on every request from the actor's current role and active flag;
nothing is cached between requests.
"""
from enum import Enum
from typing import Mapping

from mosman.core.errors import AuthorizationError
from mosman.models.user_profile import UserProfile, UserRole


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"


class Resource(str, Enum):
    POCKET = "pocket"
    CATEGORY = "category"
    DONATION = "donation"
    EXPENSE = "expense"
    USER = "user"


ANY_ROLE = frozenset(UserRole)
ADMIN_ONLY = frozenset({UserRole.ADMIN})
STAFF = frozenset({UserRole.ADMIN, UserRole.TREASURER})

POLICY: Mapping[tuple[Resource, Action], frozenset[UserRole]] = {
    (Resource.POCKET, Action.READ): ANY_ROLE,
    (Resource.POCKET, Action.CREATE): ADMIN_ONLY,
    (Resource.POCKET, Action.UPDATE): ADMIN_ONLY,
    (Resource.POCKET, Action.DELETE): ADMIN_ONLY,

    (Resource.CATEGORY, Action.READ): ANY_ROLE,
    (Resource.CATEGORY, Action.CREATE): ADMIN_ONLY,
    (Resource.CATEGORY, Action.UPDATE): ADMIN_ONLY,
    (Resource.CATEGORY, Action.DELETE): ADMIN_ONLY,

    (Resource.DONATION, Action.READ): ANY_ROLE,
    (Resource.DONATION, Action.CREATE): STAFF,
    (Resource.DONATION, Action.UPDATE): STAFF,
    (Resource.DONATION, Action.DELETE): ADMIN_ONLY,

    (Resource.EXPENSE, Action.READ): ANY_ROLE,
    (Resource.EXPENSE, Action.CREATE): STAFF,
    (Resource.EXPENSE, Action.UPDATE): STAFF,
    (Resource.EXPENSE, Action.DELETE): ADMIN_ONLY,
    (Resource.EXPENSE, Action.APPROVE): ADMIN_ONLY,

    # Reading other users' profiles; the own profile is always readable.
    (Resource.USER, Action.READ): ADMIN_ONLY,
    (Resource.USER, Action.UPDATE): ADMIN_ONLY,
    (Resource.USER, Action.DELETE): ADMIN_ONLY,
}


def is_allowed(role: UserRole, is_active: bool, action: Action, resource: Resource) -> bool:
    """Pure policy decision. Unlisted (resource, action) pairs are denied."""
    if not is_active:
        return False
    return role in POLICY.get((resource, action), frozenset())


def authorize(actor: UserProfile, action: Action, resource: Resource) -> UserProfile:
    """Raise AuthorizationError unless the actor may perform the action."""
    if not actor.is_active:
        raise AuthorizationError("User account is disabled")
    if not is_allowed(actor.role, actor.is_active, action, resource):
        allowed = sorted(r.value for r in POLICY.get((resource, action), frozenset()))
        if not allowed:
            raise AuthorizationError(f"Action '{action.value}' is not permitted on {resource.value}")
        raise AuthorizationError(
            f"Insufficient permissions. Required role(s): {', '.join(allowed)}"
        )
    return actor


def can_read_user(actor: UserProfile, user_id: str) -> bool:
    """Anyone may read their own profile; admins may read everyone's."""
    if not actor.is_active:
        return False
    if actor.id == user_id:
        return True
    return is_allowed(actor.role, actor.is_active, Action.READ, Resource.USER)
