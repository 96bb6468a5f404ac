import pytest
from sqlalchemy import func, select

from app.models import Article, Category, User
from app.seed import seed_database
from app.utils.security import verify_password


@pytest.mark.anyio
async def test_seed_populates_empty_database(session):
    assert await seed_database(session) is True

    assert await session.scalar(select(func.count(Category.id))) == 5
    assert await session.scalar(select(func.count(Article.id))) == 5

    users = (await session.execute(select(User))).scalars().all()
    assert len(users) == 2
    assert all(user.is_verified for user in users)
    assert verify_password("password123", users[0].password_hash)


@pytest.mark.anyio
async def test_seed_skips_when_data_exists(session):
    session.add(Category(name="Existing", description="already here"))
    await session.commit()

    assert await seed_database(session) is False
    assert await session.scalar(select(func.count(Category.id))) == 1
