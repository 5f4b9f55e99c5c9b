"""Domain enumerations and access-control rules."""

import enum


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class UserRole(str, enum.Enum):
    COORDINATOR = "coordinator"
    VIEWER = "viewer"


class Permission(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    SUBSCRIBE = "subscribe"


# Capability table: maps role -> operations it may perform
ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.COORDINATOR: frozenset(
        {Permission.READ, Permission.WRITE, Permission.SUBSCRIBE}
    ),
    UserRole.VIEWER: frozenset({Permission.READ, Permission.SUBSCRIBE}),
}


class EventKind(str, enum.Enum):
    REQUEST_UPDATE = "requestUpdate"
    STATUS_CHANGE = "statusChange"


class UpdateAction(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    SCHEDULED = "scheduled"
    DELETED = "deleted"
