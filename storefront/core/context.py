"""Request-scoped caller identity passed explicitly into services."""
import uuid
from dataclasses import dataclass
from typing import Optional

from storefront.core.exceptions import UnauthorizedError, ForbiddenError
from storefront.models.user import UserRole


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Anonymous callers have no user_id."""
    user_id: Optional[uuid.UUID] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "RequestContext":
        return cls()

    @classmethod
    def for_user(cls, user) -> "RequestContext":
        return cls(user_id=user.id, email=user.email, name=user.name, role=user.role)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == UserRole.ADMIN.value

    def require_user(self) -> uuid.UUID:
        if not self.is_authenticated:
            raise UnauthorizedError("Authentication required")
        return self.user_id

    def require_admin(self) -> None:
        self.require_user()
        if not self.is_admin:
            raise ForbiddenError("Admin access required")

    def can_access_owner(self, owner_id: Optional[uuid.UUID]) -> bool:
        return self.is_admin or (self.is_authenticated and owner_id == self.user_id)
