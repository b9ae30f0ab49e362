"""Role capability checks and sensitive-value masking."""

from clean_village.utils.constants import SYSTEM_ROLE, VIEW_ROLES, WRITE_ROLES


def can_write(actor) -> bool:
    """BOSS and MANAGER (and the System actor) may change records."""
    return actor is not None and (
        actor.role in WRITE_ROLES or actor.role == SYSTEM_ROLE
    )


def can_view_data(actor) -> bool:
    return actor is not None and actor.role in VIEW_ROLES


def require_write(actor):
    """Raise PermissionError unless *actor* may write."""
    if not can_write(actor):
        role = actor.role if actor is not None else "anonymous"
        raise PermissionError(f"Role {role} has read-only access")


def mask_sensitive(actor, value, kind: str = "generic"):
    """Return *value* as the actor's role is allowed to see it.

    *kind* is one of 'money', 'phone', 'address', 'generic'.
    """
    role = actor.role if actor is not None else ""
    if role in WRITE_ROLES:
        return value
    if role == "DECOY":
        return "---"
    if role == "STAFF":
        if kind == "money":
            return "****"
        if kind == "phone" and isinstance(value, str):
            if len(value) < 4:
                return value
            return value[:4] + "******"
        if kind == "address" and isinstance(value, str):
            return value[:6] + "..." if len(value) > 6 else value
        if kind == "generic":
            return "****"
    return value
