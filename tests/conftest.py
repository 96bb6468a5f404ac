import os
import tempfile

# 必须在导入 app 之前设置，Settings 会被 lru_cache 缓存
_TMP_DIR = tempfile.mkdtemp(prefix="news-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/test_news.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "true"
os.environ["ENVIRONMENT"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient

from app.database import AsyncSessionLocal, Base, engine
from app.main import app
from app.services.email_service import get_email_sender


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_tables(anyio_backend):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(db_tables):
    async with AsyncSessionLocal() as db:
        yield db


class Outbox:
    """记录发出的邮件，替代 SMTP"""

    def __init__(self) -> None:
        self.messages = []
        self.fail = False

    def __call__(self, to_email: str, subject: str, html_content: str) -> bool:
        if self.fail:
            return False
        self.messages.append((to_email, subject, html_content))
        return True


@pytest.fixture
def outbox():
    box = Outbox()
    app.dependency_overrides[get_email_sender] = lambda: box
    yield box
    app.dependency_overrides.pop(get_email_sender, None)


@pytest.fixture
async def client(db_tables, outbox):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
