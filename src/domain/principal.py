from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ORGANIZER = "organizer"
    ADMIN = "admin"


# Roles a visitor may pick at registration; admins are provisioned out of band.
SELF_SERVICE_ROLES = frozenset({Role.USER, Role.ORGANIZER})


@dataclass(frozen=True)
class Principal:
    """The authenticated actor performing an operation."""

    id: str
    role: Role
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_organizer(self) -> bool:
        return self.role == Role.ORGANIZER

    def owns(self, organizer_id: str | None) -> bool:
        return organizer_id is not None and organizer_id == self.id
