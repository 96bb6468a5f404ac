"""
认证服务 - 注册、登录、邮箱验证、密码重置

各流程按步骤顺序执行，任一步失败立即抛出对应的 ServiceError，不做重试。
"""
import logging
from datetime import timedelta
from typing import Optional, Tuple

from fastapi import Depends
from starlette.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.models.otp_code import OtpPurpose
from app.models.user import User
from app.services.email_service import (
    EmailSender,
    get_email_sender,
    render_password_reset_email,
    render_verification_email,
)
from app.services.exceptions import (
    AlreadyVerified,
    Conflict,
    EmailDeliveryError,
    InvalidCredentials,
    NotFound,
    OtpInvalidOrExpired,
    OtpNotFound,
    OtpNotVerified,
)
from app.services.otp_service import OtpService
from app.utils.metrics import EMAIL_DELIVERIES
from app.utils.security import (
    SessionIssuer,
    get_password_hash,
    get_session_issuer,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    认证流程编排

    依赖（数据库会话、配置、令牌签发器、邮件发送器）全部由构造函数注入。
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        issuer: SessionIssuer,
        send_email: EmailSender,
        otp_service: Optional[OtpService] = None,
    ):
        self.db = db
        self.settings = settings
        self.issuer = issuer
        self.send_email = send_email
        self.otp = otp_service or OtpService(db)

    @property
    def _otp_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.otp_expire_minutes)

    async def _find_user(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _require_user(self, email: str) -> User:
        user = await self._find_user(email)
        if not user:
            raise NotFound("用户不存在")
        return user

    async def _deliver(self, to_email: str, subject: str, html: str) -> None:
        sent = await run_in_threadpool(self.send_email, to_email, subject, html)
        EMAIL_DELIVERIES.labels("sent" if sent else "failed").inc()
        if not sent:
            raise EmailDeliveryError()

    # ------------------------------------------------------------------
    # 注册 / 登录
    # ------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> User:
        """注册新用户（未验证状态，不签发令牌）"""
        if await self._find_user(email):
            raise Conflict("该邮箱已被注册")

        password_hash = await run_in_threadpool(get_password_hash, password)
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            is_verified=False,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("该邮箱已被注册")
        await self.db.refresh(user)

        logger.info("User registered: %s", user.id)
        return user

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        """
        登录并签发令牌

        邮箱不存在与密码错误返回同一错误，避免邮箱枚举。
        """
        user = await self._find_user(email)
        if not user:
            raise InvalidCredentials()

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            raise InvalidCredentials()

        token = self.issuer.mint(user.id)
        return token, user

    # ------------------------------------------------------------------
    # 邮箱验证
    # ------------------------------------------------------------------

    async def request_email_verification(self, email: str) -> None:
        user = await self._require_user(email)
        if user.is_verified:
            raise AlreadyVerified()

        code = await self.otp.issue(
            user.id, OtpPurpose.EMAIL_VERIFICATION, self.settings.otp_length, self._otp_ttl
        )
        await self.db.commit()

        await self._deliver(user.email, "Verify your email", render_verification_email(user.name, code))

    async def verify_email(self, email: str, otp: str) -> User:
        """校验邮箱验证码：先标记用户已验证，再删除验证码记录"""
        user = await self._require_user(email)
        if user.is_verified:
            raise AlreadyVerified()

        try:
            record = await self.otp.confirm(user.id, OtpPurpose.EMAIL_VERIFICATION, otp)
        except OtpNotFound:
            raise OtpInvalidOrExpired()

        user.is_verified = True
        await self.db.flush()
        await self.otp.discard(record)
        await self.db.commit()

        logger.info("Email verified for user %s", user.id)
        return user

    # ------------------------------------------------------------------
    # 密码重置
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> None:
        user = await self._require_user(email)

        code = await self.otp.issue(
            user.id, OtpPurpose.PASSWORD_RESET, self.settings.otp_length, self._otp_ttl
        )
        await self.db.commit()

        await self._deliver(user.email, "Reset your password", render_password_reset_email(user.name, code))

    async def verify_password_reset_otp(self, email: str, otp: str) -> None:
        user = await self._require_user(email)
        await self.otp.confirm(user.id, OtpPurpose.PASSWORD_RESET, otp, reject_confirmed=True)
        await self.db.commit()

    async def reset_password(self, email: str, new_password: str) -> None:
        """
        完成密码重置

        要求重置验证码已校验通过；更新密码后删除验证码记录，已用过的验证码不能再次使用。
        """
        user = await self._require_user(email)

        record = await self.otp.get(user.id, OtpPurpose.PASSWORD_RESET)
        if record is None:
            raise OtpNotFound()
        if not record.is_verified:
            raise OtpNotVerified()

        user.password_hash = await run_in_threadpool(get_password_hash, new_password)
        await self.db.flush()
        await self.otp.discard(record)
        await self.db.commit()

        logger.info("Password reset for user %s", user.id)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: SessionIssuer = Depends(get_session_issuer),
    send_email: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, settings, issuer, send_email)
