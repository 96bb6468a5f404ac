"""
初始数据填充：分类、演示用户与示例文章

仅当用户、分类、文章三张表都为空时执行。
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transaction
from app.models.article import Article, ArticleStatus
from app.models.category import Category
from app.models.user import User
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)

SEED_PASSWORD = "password123"

CATEGORIES = [
    ("Education", "Related to education, school, and college"),
    ("Entertainment", "Related to entertainment, movies, and series"),
    ("Health", "Related to health, medical, and fitness"),
    ("Music", "Related to music, songs, and albums"),
    ("Technology", "Related to technology, programming, and computing"),
]

USERS = [
    ("Gojo Satoru", "gojo@example.com"),
    ("Ryomen Sukuna", "sukuna@example.com"),
]

# (title, slug, thumbnail, content, 分类下标, 作者下标)
ARTICLES = [
    (
        "The Future of AI in Education",
        "future-of-ai-in-education",
        "https://example.com/images/ai-education.jpg",
        "Artificial Intelligence is revolutionizing the education sector...",
        0, 0,
    ),
    (
        "Top 10 Movies of 2024",
        "top-10-movies-2024",
        "https://example.com/images/movies-2024.jpg",
        "2024 has been an exceptional year for cinema. Here are our top picks...",
        1, 1,
    ),
    (
        "Breakthrough in Cancer Research",
        "breakthrough-cancer-research",
        "https://example.com/images/cancer-research.jpg",
        "Scientists have made a groundbreaking discovery in cancer treatment...",
        2, 0,
    ),
    (
        "The Rise of K-Pop Globally",
        "rise-of-kpop-globally",
        "https://example.com/images/kpop.jpg",
        "K-Pop has taken the world by storm. We explore its global impact...",
        3, 1,
    ),
    (
        "Quantum Computing: A New Era",
        "quantum-computing-new-era",
        "https://example.com/images/quantum-computing.jpg",
        "Quantum computing is set to revolutionize technology as we know it...",
        4, 0,
    ),
]


async def is_database_empty(db: AsyncSession) -> bool:
    for model in (User, Category, Article):
        if await db.scalar(select(func.count()).select_from(model)):
            return False
    return True


async def seed_database(db: AsyncSession) -> bool:
    """
    填充初始数据

    Returns:
        是否执行了填充（已有数据时返回 False）
    """
    if not await is_database_empty(db):
        logger.info("Database already contains data, seeding skipped")
        return False

    password_hash = get_password_hash(SEED_PASSWORD)

    async with transaction(db):
        categories = [Category(name=name, description=desc) for name, desc in CATEGORIES]
        users = [
            User(name=name, email=email, password_hash=password_hash, is_verified=True)
            for name, email in USERS
        ]
        db.add_all(categories + users)
        await db.flush()

        db.add_all([
            Article(
                title=title,
                slug=slug,
                thumbnail=thumbnail,
                content=content,
                category_id=categories[category_index].id,
                author_id=users[author_index].id,
                status=ArticleStatus.PUBLISHED.value,
            )
            for title, slug, thumbnail, content, category_index, author_index in ARTICLES
        ])

    logger.info(
        "Seeded %d categories, %d users, %d articles",
        len(CATEGORIES), len(USERS), len(ARTICLES),
    )
    return True
