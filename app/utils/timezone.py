"""
统一时间处理：数据库中保存不带时区信息的 UTC 时间
"""
from datetime import datetime, timezone


def utc_now_naive() -> datetime:
    """当前 UTC 时间（naive）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
