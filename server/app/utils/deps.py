from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.utils.security import decode_access_token

# auto_error=False：缺少 / 格式错误的 Authorization 头由下方统一返回 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Bearer 鉴权依赖：校验 Token → 查询用户 → 返回 User 实例"""
    if not token:
        raise _unauthorized("未提供认证凭据")

    user_id = decode_access_token(token)
    if user_id is None:
        raise _unauthorized("无效或已过期的认证凭据")

    from app.services.auth_service import get_user_by_id

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise _unauthorized("无效或已过期的认证凭据")

    return user
