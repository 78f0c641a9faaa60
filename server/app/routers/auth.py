from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    UserResponse,
    TokenResponse,
)
from app.schemas.common import ApiResponse
from app.services.auth_service import (
    register_user,
    authenticate_user,
    build_token,
)
from app.utils.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=201, summary="用户注册")
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """邮箱 + 密码注册，返回用户信息"""
    user = await register_user(db, body.email, body.password, body.username)
    await db.commit()
    return ApiResponse(message="注册成功", data=UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[AuthResponse], summary="用户登录")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """邮箱 + 密码登录，返回用户信息和 JWT Token"""
    user = await authenticate_user(db, body.email, body.password)
    return ApiResponse(
        message="登录成功",
        data=AuthResponse(
            user=UserResponse.model_validate(user),
            token=TokenResponse(**build_token(user)),
        ),
    )


@router.get("/me", response_model=ApiResponse[UserResponse], summary="获取当前用户")
async def get_me(current_user: User = Depends(get_current_user)):
    """根据 Token 返回当前登录用户信息"""
    return ApiResponse(message="获取成功", data=UserResponse.model_validate(current_user))
