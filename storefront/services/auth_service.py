from datetime import timedelta
from typing import Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.user import User, UserRole
from storefront.core.exceptions import ConflictError, UnauthorizedError
from storefront.core.security import verify_password, get_password_hash, create_access_token
from storefront.config import settings


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for user registration, login and token management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.CUSTOMER
    ) -> User:
        """
        Create an account. Emails are stored lower-cased.

        Raises:
            ConflictError: email already registered
        """
        if await self.get_user_by_email(email):
            raise ConflictError("Email already registered")

        user = User(
            email=email.lower(),
            name=name,
            password_hash=get_password_hash(password),
            role=role.value,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"User registered: {user.email} ({user.role})")
        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)
        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            return None

        if not user.is_active:
            return None

        return user

    async def login(self, email: str, password: str) -> Tuple[User, str, int]:
        user = await self.authenticate_user(email, password)
        if user is None:
            logger.warning(f"Failed login for {email}")
            raise UnauthorizedError("Invalid email or password")
        token, expires_in = self.create_token(user)
        return user, token, expires_in

    def create_token(self, user: User) -> Tuple[str, int]:
        """
        Create an access token for the user.

        Returns:
            Tuple of (access_token, expires_in_seconds)
        """
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(
            subject=user.id,
            expires_delta=expires_delta,
            additional_claims={"role": user.role, "email": user.email},
        )
        return token, int(expires_delta.total_seconds())
