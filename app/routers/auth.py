"""
认证路由：注册、登录、邮箱验证、重置密码
"""
from fastapi import APIRouter, Depends, status

from app.schemas.user import (
    EmailRequest,
    MessageResponse,
    OtpVerifyRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.services.auth_service import AuthService, get_auth_service
from app.utils.rate_limiter import send_code_rate_limiter

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    auth: AuthService = Depends(get_auth_service),
):
    """用户注册"""
    user = await auth.register(data.name, data.email, data.password)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: UserLogin,
    auth: AuthService = Depends(get_auth_service),
):
    """用户登录"""
    token, user = await auth.login(data.email, data.password)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post(
    "/email-verification/request",
    response_model=MessageResponse,
    dependencies=[Depends(send_code_rate_limiter)],
)
async def request_email_verification(
    data: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """发送邮箱验证码"""
    await auth.request_email_verification(data.email)
    return MessageResponse(message="验证码已发送")


@router.post("/email-verification/verify", response_model=MessageResponse)
async def verify_email(
    data: OtpVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """校验邮箱验证码"""
    await auth.verify_email(data.email, data.otp)
    return MessageResponse(message="邮箱验证成功")


@router.post(
    "/reset-password/request",
    response_model=MessageResponse,
    dependencies=[Depends(send_code_rate_limiter)],
)
async def request_password_reset(
    data: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """发送重置密码验证码"""
    await auth.request_password_reset(data.email)
    return MessageResponse(message="验证码已发送")


@router.post("/reset-password/verify", response_model=MessageResponse)
async def verify_password_reset(
    data: OtpVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """校验重置密码验证码"""
    await auth.verify_password_reset_otp(data.email, data.otp)
    return MessageResponse(message="验证码校验通过")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """使用已校验的验证码重置密码"""
    await auth.reset_password(data.email, data.new_password)
    return MessageResponse(message="密码已重置")
