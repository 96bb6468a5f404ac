"""
测试数据构造辅助函数
"""
from httpx import AsyncClient
from sqlalchemy import select

from app.database import AsyncSessionLocal
from app.models import Category, OtpCode, User
from app.utils.security import get_password_hash

API = "/api/v1"
PASSWORD = "password123"

# 最小的合法 PNG 文件头，仅按扩展名校验
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def create_user(
    email: str = "reader@example.com",
    name: str = "Reader",
    verified: bool = True,
) -> User:
    async with AsyncSessionLocal() as db:
        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(PASSWORD),
            is_verified=verified,
        )
        db.add(user)
        await db.commit()
        return user


async def create_category(name: str = "Technology") -> Category:
    async with AsyncSessionLocal() as db:
        category = Category(name=name, description=f"Related to {name.lower()}")
        db.add(category)
        await db.commit()
        return category


async def latest_otp(email: str, purpose: str):
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(OtpCode)
            .join(User, User.id == OtpCode.user_id)
            .where(User.email == email, OtpCode.purpose == purpose)
        )
        return result.scalar_one_or_none()


async def get_user(email: str):
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    resp = await client.post(f"{API}/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
