"""登录 / 注册请求与响应模型。"""
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., description="用户名")
    password: str = Field(..., description="密码")


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, description="用户名（唯一）")
    password: str = Field(..., min_length=6, description="密码（至少 6 位）")
    name: str | None = Field(None, description="学生姓名")


class AuthUser(BaseModel):
    id: str = Field(..., description="学生 ID")
    name: str = Field(..., description="显示名称")


class AuthResponse(BaseModel):
    token: str = Field(..., description="JWT access token")
    user: AuthUser = Field(..., description="当前登录学生")
