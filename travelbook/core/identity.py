from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity handed to every booking operation."""
    id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Caller":
        return cls(id=user.id, role=user.role)
