"""Role based permissions: fixtures, action map and checks."""
from __future__ import annotations

from typing import Dict, List, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.db import Database
from core.exceptions import NoPermissionError, PermissionsError
from core.logging_config import get_logger
from core.models import Permission, Role

LOGGER = get_logger(__name__)

# (object_type, action_types)
PERMISSION_FIXTURES: List[Tuple[str, Tuple[str, ...]]] = [
    ("post", ("browse", "read", "edit", "add", "destroy", "publish")),
    ("setting", ("browse", "read", "edit")),
    ("notification", ("browse", "add", "destroy")),
    ("user", ("browse", "read", "edit", "add", "destroy")),
    ("theme", ("browse", "edit")),
    ("plugin", ("browse", "edit")),
    ("mail", ("send",)),
]

ADMINISTRATOR = "Administrator"

ROLE_FIXTURES: Dict[str, Tuple[str, Dict[str, Tuple[str, ...]]]] = {
    ADMINISTRATOR: ("Administrators", {"*": ("*",)}),
    "Editor": ("Editors", {
        "post": ("browse", "read", "edit", "add", "destroy", "publish"),
        "setting": ("browse", "read"),
        "user": ("browse", "read"),
        "notification": ("browse",),
    }),
    "Author": ("Authors", {
        "post": ("browse", "read", "add"),
        "setting": ("browse", "read"),
        "notification": ("browse",),
    }),
}


def seed_fixtures(session: Session) -> bool:
    """
    Insert default roles and permissions into an empty database.

    Returns:
        True when fixtures were inserted.
    """
    if session.scalar(select(func.count()).select_from(Role)):
        return False

    permissions: Dict[Tuple[str, str], Permission] = {}
    for object_type, actions in PERMISSION_FIXTURES:
        for action in actions:
            permission = Permission(
                name=f"{action.capitalize()} {object_type}s",
                action_type=action,
                object_type=object_type,
            )
            session.add(permission)
            permissions[(action, object_type)] = permission

    for name, (description, grants) in ROLE_FIXTURES.items():
        role = Role(name=name, description=description)
        for object_type, actions in grants.items():
            for (action, obj), permission in permissions.items():
                if object_type in ("*", obj) and ("*" in actions or action in actions):
                    role.permissions.append(permission)
        session.add(role)

    LOGGER.info("Seeded %d roles and %d permissions", len(ROLE_FIXTURES), len(permissions))
    return True


class PermissionsService:
    """Loads permission data once and answers ``can`` questions from memory."""

    def __init__(self, database: Database):
        self.database = database
        self.actions_map: Dict[str, List[str]] = {}
        self.role_grants: Dict[str, Set[Tuple[str, str]]] = {}

    def init(self) -> Dict[str, List[str]]:
        """
        Build the action map ``{action_type: [object_type, ...]}`` and role grants.

        Raises:
            PermissionsError: If no permissions are defined.
        """
        with self.database.readonly_session() as session:
            permissions = list(session.scalars(select(Permission)))
            roles = list(session.scalars(select(Role)))
            if not permissions:
                raise PermissionsError("No permissions defined; fixtures were not loaded")

            actions_map: Dict[str, List[str]] = {}
            for permission in permissions:
                objects = actions_map.setdefault(permission.action_type, [])
                if permission.object_type not in objects:
                    objects.append(permission.object_type)

            role_grants = {
                role.name: {(p.action_type, p.object_type) for p in role.permissions}
                for role in roles
            }

        self.actions_map = {action: sorted(objects) for action, objects in actions_map.items()}
        self.role_grants = role_grants
        LOGGER.debug(
            "Permissions loaded",
            extra={"extra_data": {"actions": len(self.actions_map), "roles": sorted(role_grants)}},
        )
        return self.actions_map

    def can(self, role: str, action: str, object_type: str) -> bool:
        return (action, object_type) in self.role_grants.get(role, set())

    def ensure(self, role: str, action: str, object_type: str) -> None:
        """
        Raises:
            NoPermissionError: If ``role`` may not perform ``action`` on ``object_type``.
        """
        if not self.can(role, action, object_type):
            raise NoPermissionError(f"{role} may not {action} {object_type}")


__all__ = ["PermissionsService", "seed_fixtures", "ADMINISTRATOR", "PERMISSION_FIXTURES", "ROLE_FIXTURES"]
