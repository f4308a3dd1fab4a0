from typing import Annotated, Optional
import uuid
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.core.context import RequestContext
from storefront.core.exceptions import UnauthorizedError
from storefront.core.security import verify_access_token
from storefront.models.user import User
from storefront.services.email_service import EmailService, get_email_service
from storefront.services.payment_service import PaymentService, get_payment_service


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme; public routes accept requests without a token
security = HTTPBearer(auto_error=False)


async def get_request_context(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> RequestContext:
    """
    Resolve the caller from the bearer token.

    No token gives an anonymous context. A token that is present but invalid,
    or that points at a missing or deactivated account, is rejected.
    """
    if credentials is None:
        return RequestContext.anonymous()

    user_id = verify_access_token(credentials.credentials)
    if user_id is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise UnauthorizedError("Could not validate credentials")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid user_id in token: {user_id}")
        raise UnauthorizedError("Could not validate credentials")

    user = await db.get(User, user_uuid)
    if user is None or not user.is_active:
        raise UnauthorizedError("Could not validate credentials")

    return RequestContext.for_user(user)


async def require_user(
    ctx: Annotated[RequestContext, Depends(get_request_context)],
) -> RequestContext:
    ctx.require_user()
    return ctx


async def require_admin(
    ctx: Annotated[RequestContext, Depends(get_request_context)],
) -> RequestContext:
    ctx.require_admin()
    return ctx


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
Context = Annotated[RequestContext, Depends(get_request_context)]
UserContext = Annotated[RequestContext, Depends(require_user)]
AdminContext = Annotated[RequestContext, Depends(require_admin)]
Email = Annotated[EmailService, Depends(get_email_service)]
Payments = Annotated[PaymentService, Depends(get_payment_service)]
