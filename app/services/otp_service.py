"""
验证码服务 - 按 (用户, 用途) 管理一次性验证码

每个 (user_id, purpose) 至多保留一条 OtpCode 记录：
1. issue: 生成新验证码，存在旧记录时原地覆盖（验证码、过期时间、校验状态）
2. confirm: 校验验证码，不存在 / 已校验 / 不匹配或过期 分别抛出对应异常
3. discard: 删除记录（邮箱验证成功、密码重置完成后调用）
"""
import logging
import random
import string
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.otp_code import OtpCode, OtpPurpose
from app.services.exceptions import OtpAlreadyConfirmed, OtpInvalidOrExpired, OtpNotFound
from app.utils.metrics import OTP_ISSUED
from app.utils.timezone import utc_now_naive

logger = logging.getLogger(__name__)


def generate_code(length: int = 4) -> str:
    """生成数字验证码（每位独立均匀取 0-9）"""
    return ''.join(random.choices(string.digits, k=length))


class OtpService:
    """
    验证码账本

    使用方式:
        service = OtpService(db)
        code = await service.issue(user.id, OtpPurpose.PASSWORD_RESET, 4, timedelta(minutes=10))
        await service.confirm(user.id, OtpPurpose.PASSWORD_RESET, code, reject_confirmed=True)
    """

    def __init__(
        self,
        db: AsyncSession,
        code_generator: Callable[[int], str] = generate_code,
        clock: Callable[[], datetime] = utc_now_naive,
    ):
        self.db = db
        self._generate = code_generator
        self._now = clock

    async def get(self, user_id: str, purpose: OtpPurpose) -> Optional[OtpCode]:
        result = await self.db.execute(
            select(OtpCode)
            .where(OtpCode.user_id == user_id, OtpCode.purpose == purpose.value)
            .order_by(OtpCode.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def issue(
        self,
        user_id: str,
        purpose: OtpPurpose,
        length: int,
        ttl: timedelta,
    ) -> str:
        """
        生成并保存验证码

        Returns:
            明文验证码（用于组装邮件）
        """
        code = self._generate(length)
        expires_at = self._now() + ttl

        record = await self.get(user_id, purpose)
        if record is None:
            record = OtpCode(
                user_id=user_id,
                purpose=purpose.value,
                otp=code,
                expires_at=expires_at,
                is_verified=False,
            )
            self.db.add(record)
        else:
            # 覆盖旧验证码，旧验证码随即失效
            record.otp = code
            record.expires_at = expires_at
            record.is_verified = False

        await self.db.flush()
        OTP_ISSUED.labels(purpose.value).inc()
        logger.info("OTP issued for user %s (%s)", user_id, purpose.value)
        return code

    async def confirm(
        self,
        user_id: str,
        purpose: OtpPurpose,
        candidate: str,
        reject_confirmed: bool = False,
    ) -> OtpCode:
        """
        校验验证码，成功后标记为已校验

        Raises:
            OtpNotFound: 没有对应记录
            OtpAlreadyConfirmed: reject_confirmed 且记录已校验
            OtpInvalidOrExpired: 验证码不匹配或已过期（不区分具体原因）
        """
        record = await self.get(user_id, purpose)
        if record is None:
            raise OtpNotFound()

        if reject_confirmed and record.is_verified:
            raise OtpAlreadyConfirmed()

        # TODO: 改为 secrets.compare_digest 常量时间比较
        if record.otp != candidate or self._now() > record.expires_at:
            raise OtpInvalidOrExpired()

        record.is_verified = True
        await self.db.flush()
        return record

    async def discard(self, record: OtpCode) -> None:
        await self.db.delete(record)
        await self.db.flush()
