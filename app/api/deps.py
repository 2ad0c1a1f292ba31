"""API 依赖项：鉴权与当前学生。"""
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import decode_access_token
from app.models.user import User
from app.repositories.user_repository import get_user_by_id

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """解析 Authorization: Bearer <token>；未登录或 token 无效时返回 None。"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        return None
    return await get_user_by_id(db, user_id)


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """必须登录的接口使用。"""
    if user is None:
        raise HTTPException(status_code=401, detail="Please sign in.")
    return user
