"""
Redis 客户端
"""
import redis.asyncio as redis
from app.config import get_settings

settings = get_settings()

# Redis 连接池配置
redis_client = redis.from_url(
    settings.redis_url,
    encoding="utf-8",
    decode_responses=True,
    max_connections=20,
    socket_timeout=2,             # 读写超时（秒）
    socket_connect_timeout=2,     # 连接超时（秒）
    retry_on_timeout=False,
    health_check_interval=30,
)
