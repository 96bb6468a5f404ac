"""
验证码发送速率限制器

按客户端 IP + 路径计数，固定时间窗口。
Redis 不可用时放行请求（fail-open），只记录警告。
"""
import logging

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from app.config import get_settings
from app.utils.redis_client import redis_client

settings = get_settings()
logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, times: int = 5, seconds: int = 60):
        """
        Args:
            times: 时间窗口内允许的请求次数
            seconds: 时间窗口（秒）
        """
        self.times = times
        self.seconds = seconds

    async def __call__(self, request: Request):
        if not settings.rate_limit_enabled:
            return

        key = f"rate_limit:{self._get_client_ip(request)}:{request.url.path}"
        try:
            current = await redis_client.get(key)
            if current and int(current) >= self.times:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="请求过于频繁，请稍后再试",
                )

            async with redis_client.pipeline() as pipe:
                await pipe.incr(key)
                if not current:
                    await pipe.expire(key, self.seconds)
                await pipe.execute()
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", type(exc).__name__)

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        # X-Forwarded-For 可能包含多个 IP，取第一个
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


send_code_rate_limiter = RateLimiter(
    times=settings.send_code_rate_limit_times,
    seconds=settings.send_code_rate_limit_seconds,
)
