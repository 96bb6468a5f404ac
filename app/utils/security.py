"""
安全相关工具：JWT 会话令牌、密码哈希、当前用户依赖
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
import logging
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.config import Settings, get_settings
from app.database import get_db
from app.models.user import User
from app.services.exceptions import TokenExpired, TokenMalformed, Unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """生成密码哈希"""
    return pwd_context.hash(password)


class SessionIssuer:
    """
    会话令牌签发与校验

    签名密钥与算法来自启动时构建的 Settings，运行期间不轮换。
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._ttl = timedelta(hours=settings.jwt_access_token_expire_hours)

    def mint(self, user_id: str, now: Optional[datetime] = None) -> str:
        """签发 JWT，载荷包含 sub / iat / exp"""
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> str:
        """
        校验 JWT 并返回用户 ID

        只接受配置的对称算法，其余算法（包括 none）一律拒绝。

        Raises:
            TokenExpired: 令牌已过期
            TokenMalformed: 结构、算法或签名无效
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise TokenMalformed()
        if header.get("alg") != self._algorithm:
            raise TokenMalformed()

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise TokenMalformed()

        user_id = payload.get("sub")
        if not user_id:
            raise TokenMalformed()
        return user_id


@lru_cache()
def get_session_issuer() -> SessionIssuer:
    """获取令牌签发器单例"""
    return SessionIssuer(get_settings())


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    issuer: SessionIssuer = Depends(get_session_issuer),
    db: AsyncSession = Depends(get_db),
) -> User:
    """获取当前登录用户"""
    if not credentials or not credentials.credentials:
        raise Unauthorized("未提供认证信息")

    user_id = issuer.validate(credentials.credentials)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        logger.warning("Token subject %s no longer exists", user_id)
        raise Unauthorized("用户不存在")

    return user
