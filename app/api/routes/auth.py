"""登录与注册接口：POST /auth/login、POST /auth/register。"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import create_access_token, hash_password, password_too_long, verify_password
from app.models.user import User
from app.repositories.user_repository import create_user, get_user_by_username
from app.schemas.auth import AuthResponse, AuthUser, LoginRequest, RegisterRequest

router = APIRouter()


def _ensure_password_length(password: str) -> None:
    if password_too_long(password):
        raise HTTPException(status_code=400, detail="Password is too long (max 72 bytes).")


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(user.id)
    return AuthResponse(token=token, user=AuthUser(id=user.id, name=user.name or user.username))


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """登录：用户名+密码，成功返回 token 与 user。"""
    _ensure_password_length(body.password)
    user = await get_user_by_username(db, body.username)
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Incorrect username or password.")
    return _auth_response(user)


@router.post("/register", response_model=AuthResponse)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """注册即登录。"""
    if await get_user_by_username(db, body.username):
        raise HTTPException(status_code=400, detail="Username already exists.")
    _ensure_password_length(body.password)
    user = await create_user(
        db,
        username=body.username,
        password_hash=hash_password(body.password),
        name=body.name,
    )
    return _auth_response(user)
