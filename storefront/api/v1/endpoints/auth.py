from fastapi import APIRouter, status

from storefront.api.deps import DB, UserContext
from storefront.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    UserResponse,
)
from storefront.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: DB):
    """
    Create a customer account and sign it in.
    """
    auth_service = AuthService(db)
    user = await auth_service.register(data.email, data.password, name=data.name)
    access_token, expires_in = auth_service.create_token(user)
    return TokenResponse(access_token=access_token, token_type="bearer", expires_in=expires_in)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: DB):
    """
    Authenticate user and return an access token.
    """
    _, access_token, expires_in = await AuthService(db).login(data.email, data.password)
    return TokenResponse(access_token=access_token, token_type="bearer", expires_in=expires_in)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(db: DB, ctx: UserContext):
    user = await AuthService(db).get_user(ctx.user_id)
    return UserResponse.model_validate(user)
