# utils/roles.py
from typing import Iterable

from utils.errors import ForbiddenError

# Higher level includes every permission of the levels below it
ROLE_LEVELS = {
    "USER": 1,
    "CASHIER": 2,
    "MANAGER": 3,
    "ADMIN": 4,
    "SUPER_ADMIN": 5,
}


def _role_name(role) -> str:
    return getattr(role, "value", role)


def role_level(role) -> int:
    return ROLE_LEVELS.get(_role_name(role), 0)


def has_required_role(user_role, required_roles: Iterable) -> bool:
    """True when the user's level reaches the lowest level among the required roles."""
    required = [_role_name(r) for r in required_roles]
    if not required:
        return True
    levels = [ROLE_LEVELS[r] for r in required if r in ROLE_LEVELS]
    if not levels:
        return False
    return role_level(user_role) >= min(levels)


def check_access(user, required_roles: Iterable):
    # Each failure keeps its own message so clients can tell them apart
    required = [_role_name(r) for r in required_roles]
    if not required:
        return user
    if user is None:
        raise ForbiddenError("User not authenticated")
    role = _role_name(user.role)
    if role not in ROLE_LEVELS:
        raise ForbiddenError("User role not found")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    if not has_required_role(role, required):
        raise ForbiddenError(
            f"Access denied. Required roles: {', '.join(required)}. Your role: {role}"
        )
    return user
