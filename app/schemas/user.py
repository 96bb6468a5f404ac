"""
用户 / 认证相关 Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from datetime import datetime

from app.config import get_settings

settings = get_settings()


def _check_password_length(value: str) -> str:
    if len(value) < settings.password_min_length:
        raise ValueError(f"密码长度至少 {settings.password_min_length} 位")
    return value


class UserRegister(BaseModel):
    """用户注册请求"""
    name: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str
    password_confirmation: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if "<" in cleaned or ">" in cleaned:
            raise ValueError("名称包含非法字符")
        return cleaned

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password_length(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("两次输入的密码不一致")
        return self


class UserLogin(BaseModel):
    """用户登录请求"""
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class EmailRequest(BaseModel):
    """申请验证码请求（邮箱验证 / 重置密码）"""
    email: EmailStr


class OtpVerifyRequest(BaseModel):
    """校验验证码请求"""
    email: EmailStr
    otp: str = Field(min_length=1, max_length=10)


class ResetPasswordRequest(BaseModel):
    """重置密码请求"""
    email: EmailStr
    new_password: str
    new_password_confirmation: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password_length(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.new_password_confirmation:
            raise ValueError("两次输入的密码不一致")
        return self


class UserResponse(BaseModel):
    """用户信息响应"""
    id: str
    name: str
    email: str
    is_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    """文章 / 评论中嵌入的作者信息"""
    id: str
    name: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """登录令牌响应"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
