"""Role and sub-role flattening for capability checks.

A user's role and (for consultancy staff) sub-role are resolved once at login
into a flat permission set carried on the access token. Authorization is then
a single set-membership test.
"""

from collections.abc import Iterable

from src.portal.models.enums import UserRole, UserSubRole


def resolve_permissions(role: UserRole | str, sub_role: UserSubRole | str | None) -> list[str]:
    """Flatten role and sub-role into the permission set.

    The sub-role only counts for the generic staff role; a stray sub-role on any
    other role grants nothing.
    """
    role_value = UserRole(role).value
    permissions = [role_value]
    if sub_role and role_value == UserRole.CONSULTANCY_STAFF.value:
        permissions.append(UserSubRole(sub_role).value)
    return permissions


def is_authorized(permissions: Iterable[str], allowed: Iterable[str]) -> bool:
    """True when any permission is in the allowed set."""
    return not set(permissions).isdisjoint(allowed)


def describe_identity(role: str, sub_role: str | None) -> str:
    """Human-readable role label used in 403 messages."""
    if sub_role:
        return f"{role} ({sub_role})"
    return role
