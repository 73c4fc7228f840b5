"""Fixed-schema view of the authenticated principal handed to core services."""

from dataclasses import dataclass

from educare.app.models.user import User, UserRole


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: UserRole

    @property
    def is_guardian(self) -> bool:
        return self.role is UserRole.GUARDIAN

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, email=user.email, role=UserRole(user.role))
